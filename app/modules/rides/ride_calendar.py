"""Month grid for the ride calendar: Monday-first weeks, rides bucketed by day."""
import calendar
from collections import defaultdict
from datetime import date, datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Tuple

from app.modules.rides.schemas import CalendarDay, CalendarRide, MonthCalendar, RideResponse

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def month_grid(year: int, month: int) -> List[List[date]]:
    return calendar.Calendar(firstweekday=calendar.MONDAY).monthdatescalendar(year, month)


def grid_range(year: int, month: int) -> Tuple[date, date]:
    """First and last date shown on the month grid (leading/trailing days included)"""
    weeks = month_grid(year, month)
    return weeks[0][0], weeks[-1][-1]


def build_month_calendar(
    rides: Iterable[RideResponse],
    year: int,
    month: int,
    today: date,
    tz: tzinfo = timezone.utc,
) -> MonthCalendar:
    by_day: Dict[date, List[CalendarRide]] = defaultdict(list)
    for ride in sorted(rides, key=lambda r: r.date_time):
        ride_time = ride.date_time if ride.date_time.tzinfo else ride.date_time.replace(tzinfo=timezone.utc)
        by_day[ride_time.astimezone(tz).date()].append(CalendarRide(
            id=ride.id,
            title=ride.title,
            date_time=ride.date_time,
            meeting_point_name=ride.meeting_point_name,
            group_id=ride.group_id,
            group_name=ride.group_name,
        ))

    weeks = [
        [
            CalendarDay(
                day=day,
                in_month=day.month == month,
                is_today=day == today,
                is_past=day < today,
                rides=by_day.get(day, []),
            )
            for day in week
        ]
        for week in month_grid(year, month)
    ]
    return MonthCalendar(year=year, month=month, weekdays=WEEKDAYS, weeks=weeks)


def day_bounds(start: date, end: date, tz: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """Instants covering start 00:00 to the end of end, in tz"""
    lower = datetime(start.year, start.month, start.day, tzinfo=tz)
    upper = datetime(end.year, end.month, end.day, 23, 59, 59, 999999, tzinfo=tz)
    return lower, upper

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from supabase import Client
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.schemas import NotificationMessage, NotificationType
from app.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)


def _format_ride_time(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d/%m %H:%M UTC")
    except ValueError:
        return value


def send_due_reminders(supabase: Client, now: Optional[datetime] = None) -> int:
    """Send ride_reminder notifications for rides starting within the reminder window. Returns notifications created."""
    now = now or datetime.now(timezone.utc)
    window_end = now + timedelta(hours=settings.reminder_window_hours)
    service = NotificationService(supabase)

    rides_result = supabase.table("rides")\
        .select("id, title, date_time, meeting_point_name")\
        .gte("date_time", now.isoformat())\
        .lte("date_time", window_end.isoformat())\
        .execute()
    rides = rides_result.data or []
    if not rides:
        logger.debug("No rides in the reminder window")
        return 0

    logger.info(f"Found {len(rides)} ride(s) starting within {settings.reminder_window_hours}h")
    created = 0
    for ride in rides:
        link = f"/rides/{ride['id']}"
        try:
            already_reminded = service.reminded_user_ids(link)
            where = f" at {ride['meeting_point_name']}" if ride.get("meeting_point_name") else ""
            message = NotificationMessage(
                type=NotificationType.RIDE_REMINDER,
                title="Ride reminder",
                body=f"\"{ride['title']}\" starts {_format_ride_time(ride['date_time'])}{where}",
                link=link,
            )
            result = service.notify_ride_participants(ride["id"], message, exclude_user_ids=already_reminded)
            created += result.count
        except Exception as e:
            logger.error(f"Error sending reminders for ride {ride['id']}: {str(e)}")
    return created


async def reminder_scheduler_loop():
    """Background task that periodically sends ride reminders"""
    while True:
        try:
            count = await asyncio.to_thread(send_due_reminders, get_service_supabase())
            if count:
                logger.info(f"Sent {count} ride reminder(s)")
        except Exception as e:
            logger.error(f"Error in reminder scheduler loop: {str(e)}")

        await asyncio.sleep(settings.reminder_interval_seconds)

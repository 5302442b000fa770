from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date


class RideCreate(BaseModel):
    group_id: str
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    date_time: datetime
    start_lat: float = Field(ge=-90, le=90)
    start_lon: float = Field(ge=-180, le=180)
    meeting_point_name: Optional[str] = None


class RideResponse(BaseModel):
    id: str
    group_id: str
    created_by: str
    title: str
    description: Optional[str] = None
    date_time: datetime
    start_lat: float
    start_lon: float
    meeting_point_name: Optional[str] = None
    gpx_url: Optional[str] = None
    created_at: Optional[datetime] = None
    group_name: Optional[str] = None

    class Config:
        from_attributes = True


class CalendarRide(BaseModel):
    id: str
    title: str
    date_time: datetime
    meeting_point_name: Optional[str] = None
    group_id: str
    group_name: Optional[str] = None


class CalendarDay(BaseModel):
    day: date
    in_month: bool
    is_today: bool
    is_past: bool
    rides: List[CalendarRide] = []


class MonthCalendar(BaseModel):
    year: int
    month: int
    weekdays: List[str]
    weeks: List[List[CalendarDay]]

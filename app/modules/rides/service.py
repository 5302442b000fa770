from supabase import Client
from postgrest.exceptions import APIError
from app.core.dependencies import get_membership_role, get_user_group_ids
from app.core.exceptions import InternalError, NotFoundError, PermissionDeniedError, ValidationError
from app.modules.rides.gpx_storage import GpxStorage
from app.modules.rides.ride_calendar import build_month_calendar, day_bounds, grid_range
from app.modules.rides.schemas import RideCreate, RideResponse, MonthCalendar
from app.modules.notifications.schemas import NotificationMessage, NotificationType
from app.modules.notifications.service import NotificationService
from app.modules.tracks.gpx_parser import parse_gpx
from datetime import date, datetime, timezone
from typing import List, Optional
import logging
import os
import re
import time

logger = logging.getLogger(__name__)


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _safe_filename(filename: str) -> str:
    name = os.path.basename(filename or "track.gpx")
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "track.gpx"


class RideService:
    def __init__(
        self,
        supabase: Client,
        storage: Optional[GpxStorage] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.supabase = supabase
        self.storage = storage or GpxStorage(supabase)
        self.notifications = notifications

    def create_ride(
        self,
        ride_data: RideCreate,
        user_id: str,
        gpx_filename: Optional[str] = None,
        gpx_content: Optional[bytes] = None
    ) -> RideResponse:
        """Create a ride in one of the user's groups, storing the GPX track first when given"""
        if not ride_data.title.strip():
            raise ValidationError("Title is required")
        if get_membership_role(ride_data.group_id, user_id, self.supabase) is None:
            raise PermissionDeniedError("You must be a member of the group to create a ride")

        gpx_url = None
        gpx_key = None
        if gpx_content:
            # Reject malformed files before anything is stored
            parse_gpx(gpx_content)
            gpx_key = f"{user_id}/{int(time.time() * 1000)}-{_safe_filename(gpx_filename)}"
            gpx_url = self.storage.upload_file(gpx_content, gpx_key)

        try:
            result = self.supabase.table("rides").insert({
                "group_id": ride_data.group_id,
                "created_by": user_id,
                "title": ride_data.title.strip(),
                "description": ride_data.description or None,
                "date_time": _utc(ride_data.date_time).isoformat(),
                "start_lat": ride_data.start_lat,
                "start_lon": ride_data.start_lon,
                "meeting_point_name": ride_data.meeting_point_name or None,
                "gpx_url": gpx_url
            }).execute()
        except APIError as e:
            if gpx_key:
                self.storage.delete_file(gpx_key)
            raise InternalError(f"Failed to create ride: {e.message}")

        if not result.data:
            raise InternalError("Failed to create ride")
        ride = RideResponse(**result.data[0])
        logger.info(f"Ride {ride.id} created in group {ride.group_id} by {user_id}")
        self._announce_ride(ride)
        return ride

    def _announce_ride(self, ride: RideResponse) -> None:
        if self.notifications is None:
            return
        try:
            self.notifications.notify_group_members(
                ride.group_id,
                ride.created_by,
                NotificationMessage(
                    type=NotificationType.NEW_RIDE,
                    title="New ride",
                    body=f"\"{ride.title}\" on {ride.date_time.strftime('%d/%m/%Y %H:%M')}",
                    link=f"/rides/{ride.id}",
                ),
            )
        except Exception as e:
            logger.error(f"New ride notification for ride {ride.id} failed: {e}")

    def get_ride(self, ride_id: str) -> RideResponse:
        """Get ride by ID"""
        result = self.supabase.table("rides")\
            .select("*")\
            .eq("id", ride_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Ride not found")
        return RideResponse(**result.data[0])

    def list_rides(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        group_id: Optional[str] = None
    ) -> List[RideResponse]:
        """Rides of the user's groups ordered by date, optionally limited to [start, end]"""
        group_ids = get_user_group_ids(user_id, self.supabase)
        if group_id is not None:
            group_ids = [g for g in group_ids if g == group_id]
        if not group_ids:
            return []

        query = self.supabase.table("rides").select("*").in_("group_id", group_ids)
        if start is not None:
            query = query.gte("date_time", _utc(start).isoformat())
        if end is not None:
            query = query.lte("date_time", _utc(end).isoformat())
        result = query.order("date_time").execute()

        groups_result = self.supabase.table("groups")\
            .select("id, name")\
            .in_("id", group_ids)\
            .execute()
        names = {g["id"]: g["name"] for g in groups_result.data or []}
        return [RideResponse(**ride, group_name=names.get(ride["group_id"])) for ride in result.data or []]

    def _get_own_ride(self, ride_id: str, user_id: str) -> RideResponse:
        ride = self.get_ride(ride_id)
        if ride.created_by != user_id:
            raise PermissionDeniedError("Only the ride creator can do this")
        return ride

    def delete_ride(self, ride_id: str, user_id: str) -> bool:
        """Delete a ride with its participants and stored GPX (creator only).
        If the ride row cannot be deleted, the participant rows removed before it are put back."""
        ride = self._get_own_ride(ride_id, user_id)
        try:
            removed = self.supabase.table("participants")\
                .delete()\
                .eq("ride_id", ride_id)\
                .execute()
        except APIError as e:
            raise InternalError(f"Failed to delete ride: {e.message}")

        try:
            self.supabase.table("rides")\
                .delete()\
                .eq("id", ride_id)\
                .execute()
        except APIError as e:
            self._restore_participants(ride_id, removed.data or [])
            raise InternalError(f"Failed to delete ride: {e.message}")

        if ride.gpx_url:
            self.storage.delete_by_url(ride.gpx_url)
        logger.info(f"Ride {ride_id} deleted by {user_id}")
        return True

    def _restore_participants(self, ride_id: str, rows: List[dict]) -> None:
        if not rows:
            return
        try:
            self.supabase.table("participants")\
                .upsert(rows, on_conflict="ride_id,user_id")\
                .execute()
            logger.warning(f"Ride {ride_id} delete failed; restored {len(rows)} participants")
        except APIError as e:
            logger.error(f"Ride {ride_id} delete failed and participants could not be restored: {e.message}")

    def remove_gpx(self, ride_id: str, user_id: str) -> RideResponse:
        """Detach and delete the ride's GPX track (creator only)"""
        ride = self._get_own_ride(ride_id, user_id)
        if not ride.gpx_url:
            return ride
        result = self.supabase.table("rides")\
            .update({"gpx_url": None})\
            .eq("id", ride_id)\
            .execute()
        if not result.data:
            raise NotFoundError("Ride not found")
        self.storage.delete_by_url(ride.gpx_url)
        return RideResponse(**result.data[0])

    def get_month_calendar(self, user_id: str, year: int, month: int, today: Optional[date] = None) -> MonthCalendar:
        today = today or datetime.now(timezone.utc).date()
        first, last = grid_range(year, month)
        start, end = day_bounds(first, last)
        rides = self.list_rides(user_id, start=start, end=end)
        return build_month_calendar(rides, year, month, today)

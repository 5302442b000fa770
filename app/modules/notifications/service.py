from supabase import Client
from postgrest.exceptions import APIError
from app.core.exceptions import NotFoundError, NotificationDeliveryError
from app.modules.notifications import events
from app.modules.notifications.schemas import (
    FanOutRequest, FanOutResult, NotificationMessage, NotificationResponse, NotificationListResponse,
    NotificationType
)
from typing import Iterable, List, Set
import logging

logger = logging.getLogger(__name__)

REMINDER_STATUSES = ("attending", "maybe")


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Fan-out

    def fan_out(self, request: FanOutRequest) -> FanOutResult:
        """Dispatch a fan-out request: group members when group_id is given, otherwise the ride creator.
        No target at all is a no-op."""
        if request.group_id:
            return self.notify_group_members(request.group_id, request.except_user_id, request.message())
        if request.ride_id:
            return self.notify_ride_creator(request.ride_id, request.except_user_id, request.message())
        return FanOutResult(count=0)

    def notify_group_members(self, group_id: str, except_user_id: str, message: NotificationMessage) -> FanOutResult:
        """Notify every member of the group except the user who triggered the event"""
        group_result = self.supabase.table("groups")\
            .select("id")\
            .eq("id", group_id)\
            .limit(1)\
            .execute()
        if not group_result.data:
            raise NotFoundError("Group not found")

        members_result = self.supabase.table("group_members")\
            .select("user_id")\
            .eq("group_id", group_id)\
            .neq("user_id", except_user_id)\
            .execute()
        user_ids = [m["user_id"] for m in members_result.data or []]
        return self._insert(user_ids, message)

    def notify_ride_creator(self, ride_id: str, except_user_id: str, message: NotificationMessage) -> FanOutResult:
        """Notify the creator of the ride, unless they are the author of the event"""
        ride = self._get_ride(ride_id)
        user_ids = [] if ride["created_by"] == except_user_id else [ride["created_by"]]
        return self._insert(user_ids, message)

    def notify_ride_participants(
        self,
        ride_id: str,
        message: NotificationMessage,
        statuses: Iterable[str] = REMINDER_STATUSES,
        exclude_user_ids: Iterable[str] = (),
    ) -> FanOutResult:
        """Notify users who answered the ride with one of the given statuses"""
        self._get_ride(ride_id)
        participants_result = self.supabase.table("participants")\
            .select("user_id")\
            .eq("ride_id", ride_id)\
            .in_("status", list(statuses))\
            .execute()
        excluded = set(exclude_user_ids)
        user_ids = [p["user_id"] for p in participants_result.data or [] if p["user_id"] not in excluded]
        return self._insert(user_ids, message)

    def _get_ride(self, ride_id: str) -> dict:
        result = self.supabase.table("rides")\
            .select("id, created_by")\
            .eq("id", ride_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Ride not found")
        return result.data[0]

    def _insert(self, user_ids: List[str], message: NotificationMessage) -> FanOutResult:
        # Preserve order, drop duplicates
        user_ids = list(dict.fromkeys(user_ids))
        if not user_ids:
            logger.debug("No recipients for %s notification", message.type.value)
            return FanOutResult(count=0)

        rows = [
            {
                "user_id": user_id,
                "type": message.type.value,
                "title": message.title,
                "body": message.body,
                "link": message.link,
            }
            for user_id in user_ids
        ]
        try:
            result = self.supabase.table("notifications").insert(rows).execute()
        except APIError as e:
            logger.error("Notification batch insert failed (%d rows): %s", len(rows), e.message)
            raise NotificationDeliveryError(f"Failed to store notifications: {e.message}")

        inserted = result.data or []
        for row in inserted:
            events.publish(row)
        logger.info("Fan-out %s: %d notification(s)", message.type.value, len(user_ids))
        return FanOutResult(count=len(user_ids))

    # Reader side

    def list_notifications(self, user_id: str, limit: int = 20) -> NotificationListResponse:
        """Latest notifications for the user, newest first, with the unread count"""
        result = self.supabase.table("notifications")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .limit(limit)\
            .execute()
        return NotificationListResponse(
            notifications=[NotificationResponse(**n) for n in result.data or []],
            unread_count=self.unread_count(user_id),
        )

    def unread_count(self, user_id: str) -> int:
        result = self.supabase.table("notifications")\
            .select("id", count="exact")\
            .eq("user_id", user_id)\
            .eq("read", False)\
            .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def mark_read(self, notification_id: str, user_id: str) -> NotificationResponse:
        result = self.supabase.table("notifications")\
            .update({"read": True})\
            .eq("id", notification_id)\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            raise NotFoundError("Notification not found")
        return NotificationResponse(**result.data[0])

    def mark_all_read(self, user_id: str) -> int:
        result = self.supabase.table("notifications")\
            .update({"read": True})\
            .eq("user_id", user_id)\
            .eq("read", False)\
            .execute()
        return len(result.data or [])

    def reminded_user_ids(self, link: str) -> Set[str]:
        """Users who already received a ride_reminder pointing at link"""
        result = self.supabase.table("notifications")\
            .select("user_id")\
            .eq("type", NotificationType.RIDE_REMINDER.value)\
            .eq("link", link)\
            .execute()
        return {n["user_id"] for n in result.data or []}

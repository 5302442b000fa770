from supabase import Client
from postgrest.exceptions import APIError
from app.core.exceptions import InternalError, NotFoundError
from app.modules.participants.schemas import (
    RsvpStatus, RsvpResult, ParticipantResponse, RsvpSummary
)
from app.modules.notifications.schemas import NotificationMessage, NotificationType
from app.modules.notifications.service import NotificationService
from datetime import datetime, timezone
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

RSVP_PHRASES = {
    RsvpStatus.ATTENDING: "is coming to",
    RsvpStatus.MAYBE: "might join",
    RsvpStatus.DECLINED: "can't make it to",
}


class ParticipantService:
    """
    RSVP state machine for one (ride, user) pair.

    States are no response (no row), attending, maybe and declined. Choosing the
    current status again retracts the answer (row deleted); choosing another
    status upserts on (ride_id, user_id), so concurrent submissions collapse to
    whichever request reaches the database last.
    """

    def __init__(self, supabase: Client, notifications: Optional[NotificationService] = None):
        self.supabase = supabase
        self.notifications = notifications

    def _get_ride(self, ride_id: str) -> dict:
        result = self.supabase.table("rides")\
            .select("id, title, created_by")\
            .eq("id", ride_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Ride not found")
        return result.data[0]

    def get_status(self, ride_id: str, user_id: str) -> Optional[RsvpStatus]:
        result = self.supabase.table("participants")\
            .select("status")\
            .eq("ride_id", ride_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return RsvpStatus(result.data[0]["status"])

    def submit_rsvp(self, ride_id: str, user_id: str, status: RsvpStatus) -> RsvpResult:
        ride = self._get_ride(ride_id)
        current = self.get_status(ride_id, user_id)

        try:
            if current == status:
                self.supabase.table("participants")\
                    .delete()\
                    .eq("ride_id", ride_id)\
                    .eq("user_id", user_id)\
                    .execute()
                logger.info(f"User {user_id} retracted RSVP on ride {ride_id}")
                return RsvpResult(ride_id=ride_id, user_id=user_id, status=None, action="retracted")

            self.supabase.table("participants").upsert(
                {
                    "ride_id": ride_id,
                    "user_id": user_id,
                    "status": status.value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="ride_id,user_id",
            ).execute()
        except APIError as e:
            raise InternalError(f"Failed to save RSVP: {e.message}")

        logger.info(f"User {user_id} RSVP {status.value} on ride {ride_id}")
        self._notify_creator(ride, user_id, status)
        return RsvpResult(ride_id=ride_id, user_id=user_id, status=status, action="updated")

    def _notify_creator(self, ride: dict, user_id: str, status: RsvpStatus) -> None:
        if self.notifications is None or ride["created_by"] == user_id:
            return
        try:
            profile = self.supabase.table("profiles")\
                .select("username")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            username = profile.data[0]["username"] if profile.data else "Someone"
            self.notifications.notify_ride_creator(
                ride["id"],
                user_id,
                NotificationMessage(
                    type=NotificationType.RSVP,
                    title="New RSVP",
                    body=f"{username} {RSVP_PHRASES[status]} \"{ride['title']}\"",
                    link=f"/rides/{ride['id']}",
                ),
            )
        except Exception as e:
            # The RSVP is stored; a lost notification must not undo it
            logger.error(f"RSVP notification for ride {ride['id']} failed: {e}")

    def list_participants(self, ride_id: str) -> List[ParticipantResponse]:
        """Participants of a ride with their profile, in answer order"""
        result = self.supabase.table("participants")\
            .select("*")\
            .eq("ride_id", ride_id)\
            .order("updated_at")\
            .execute()
        rows = result.data or []
        if not rows:
            return []
        profiles_result = self.supabase.table("profiles")\
            .select("id, username, avatar_url, bike_model")\
            .in_("id", [p["user_id"] for p in rows])\
            .execute()
        profiles = {p["id"]: p for p in profiles_result.data or []}
        participants = []
        for row in rows:
            profile = profiles.get(row["user_id"], {})
            participants.append(ParticipantResponse(
                ride_id=row["ride_id"],
                user_id=row["user_id"],
                status=row["status"],
                updated_at=row.get("updated_at"),
                username=profile.get("username"),
                avatar_url=profile.get("avatar_url"),
                bike_model=profile.get("bike_model"),
            ))
        return participants

    def summarize(self, ride_id: str) -> RsvpSummary:
        result = self.supabase.table("participants")\
            .select("status")\
            .eq("ride_id", ride_id)\
            .execute()
        summary = RsvpSummary()
        for row in result.data or []:
            status = row["status"]
            setattr(summary, status, getattr(summary, status) + 1)
        return summary

from supabase import Client
from postgrest.exceptions import APIError
from app.config import settings
from app.core.exceptions import (
    AlreadyMemberError, InternalError, InviteCodeExhaustedError, NotFoundError, ValidationError,
    is_unique_violation
)
from app.modules.groups.schemas import (
    GroupCreate, GroupRename, GroupResponse, MyGroupResponse, GroupMemberResponse, LeaveGroupResponse,
    MemberRole
)
from app.modules.notifications.schemas import NotificationMessage, NotificationType
from app.modules.notifications.service import NotificationService
from typing import List, Optional
import logging
import re
import secrets
import string

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 6
INVITE_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


def generate_invite_code() -> str:
    """Six characters drawn uniformly from A-Z0-9"""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def normalize_invite_code(code: str) -> str:
    normalized = (code or "").strip().upper()
    if not INVITE_CODE_PATTERN.match(normalized):
        raise ValidationError("Invite code must be 6 letters or digits")
    return normalized


class GroupService:
    def __init__(self, supabase: Client, notifications: Optional[NotificationService] = None):
        self.supabase = supabase
        self.notifications = notifications

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a group with a fresh invite code and make the creator its admin"""
        name = group_data.name.strip()
        if not name:
            raise ValidationError("Group name is required")

        group = self._insert_group_with_unique_code(name)

        try:
            self.supabase.table("group_members").insert({
                "group_id": group["id"],
                "user_id": user_id,
                "role": MemberRole.ADMIN.value
            }).execute()
        except Exception as e:
            # A group must never persist without an admin
            logger.error(f"Adding admin to group {group['id']} failed, removing group: {e}")
            try:
                self.supabase.table("groups").delete().eq("id", group["id"]).execute()
            except Exception as cleanup_error:
                logger.error(f"Could not remove orphan group {group['id']}: {cleanup_error}")
            raise InternalError(f"Failed to add group admin: {e}")

        logger.info(f"Group {group['id']} created by {user_id}")
        return GroupResponse(**group)

    def _insert_group_with_unique_code(self, name: str) -> dict:
        attempts = settings.invite_code_max_attempts
        for attempt in range(1, attempts + 1):
            code = generate_invite_code()
            try:
                result = self.supabase.table("groups").insert({
                    "name": name,
                    "invite_code": code
                }).execute()
            except APIError as e:
                if is_unique_violation(e):
                    logger.warning(f"Invite code collision on attempt {attempt}/{attempts}")
                    continue
                raise InternalError(f"Failed to create group: {e.message}")
            if not result.data:
                raise InternalError("Failed to create group")
            return result.data[0]
        raise InviteCodeExhaustedError(
            f"Could not generate a unique invite code after {attempts} attempts"
        )

    def get_group_by_code(self, invite_code: str) -> GroupResponse:
        code = normalize_invite_code(invite_code)
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("invite_code", code)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Invalid invite code")
        return GroupResponse(**result.data[0])

    def join_group(self, invite_code: str, user_id: str) -> GroupResponse:
        """Join the group owning invite_code as a member; announce the newcomer to the other members"""
        group = self.get_group_by_code(invite_code)
        try:
            self.supabase.table("group_members").insert({
                "group_id": group.id,
                "user_id": user_id,
                "role": MemberRole.MEMBER.value
            }).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise AlreadyMemberError()
            raise InternalError(f"Failed to join group: {e.message}")

        logger.info(f"User {user_id} joined group {group.id}")
        self._announce_new_member(group, user_id)
        return group

    def _announce_new_member(self, group: GroupResponse, user_id: str) -> None:
        if self.notifications is None:
            return
        try:
            username = self._get_username(user_id) or "A new rider"
            self.notifications.notify_group_members(
                group.id,
                user_id,
                NotificationMessage(
                    type=NotificationType.NEW_MEMBER,
                    title="New member",
                    body=f"{username} joined \"{group.name}\"",
                    link=f"/groups/{group.id}",
                ),
            )
        except Exception as e:
            # Membership already committed; the join stands
            logger.error(f"New member notification for group {group.id} failed: {e}")

    def _get_username(self, user_id: str) -> Optional[str]:
        result = self.supabase.table("profiles")\
            .select("username")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return result.data[0].get("username")

    def count_memberships(self, user_id: str) -> int:
        result = self.supabase.table("group_members")\
            .select("group_id", count="exact")\
            .eq("user_id", user_id)\
            .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def leave_group(self, group_id: str, user_id: str) -> LeaveGroupResponse:
        """Remove the user's membership; is_last_group tells the client to send the user to onboarding"""
        is_last_group = self.count_memberships(user_id) <= 1
        result = self.supabase.table("group_members")\
            .delete()\
            .eq("group_id", group_id)\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            raise NotFoundError("You are not a member of this group")
        logger.info(f"User {user_id} left group {group_id}")
        if result.data[0].get("role") == MemberRole.ADMIN.value:
            self._ensure_admin(group_id)
        return LeaveGroupResponse(group_id=group_id, is_last_group=is_last_group)

    def _ensure_admin(self, group_id: str) -> None:
        """Promote the longest-standing member when the group is left without an admin"""
        members_result = self.supabase.table("group_members")\
            .select("user_id, role")\
            .eq("group_id", group_id)\
            .order("joined_at")\
            .execute()
        members = members_result.data or []
        if not members or any(m["role"] == MemberRole.ADMIN.value for m in members):
            return
        successor = members[0]["user_id"]
        self.supabase.table("group_members")\
            .update({"role": MemberRole.ADMIN.value})\
            .eq("group_id", group_id)\
            .eq("user_id", successor)\
            .execute()
        logger.info(f"User {successor} promoted to admin of group {group_id}")

    def get_group_by_id(self, group_id: str) -> GroupResponse:
        """Get group by ID"""
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("id", group_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Group not found")
        return GroupResponse(**result.data[0])

    def rename_group(self, group_id: str, group_data: GroupRename) -> GroupResponse:
        """Rename group; the name is the only mutable group field"""
        name = group_data.name.strip()
        if not name:
            raise ValidationError("Group name is required")
        result = self.supabase.table("groups")\
            .update({"name": name})\
            .eq("id", group_id)\
            .execute()
        if not result.data:
            raise NotFoundError("Group not found")
        return GroupResponse(**result.data[0])

    def list_groups(self, user_id: str) -> List[MyGroupResponse]:
        """Groups the user belongs to, oldest membership first"""
        members_result = self.supabase.table("group_members")\
            .select("group_id, role, joined_at")\
            .eq("user_id", user_id)\
            .order("joined_at")\
            .execute()
        memberships = members_result.data or []
        if not memberships:
            return []
        groups_result = self.supabase.table("groups")\
            .select("*")\
            .in_("id", [m["group_id"] for m in memberships])\
            .execute()
        groups_by_id = {g["id"]: g for g in groups_result.data or []}
        return [
            MyGroupResponse(**groups_by_id[m["group_id"]], role=m["role"], joined_at=m.get("joined_at"))
            for m in memberships
            if m["group_id"] in groups_by_id
        ]

    def list_members(self, group_id: str) -> List[GroupMemberResponse]:
        """List all members of a group with their profile"""
        result = self.supabase.table("group_members")\
            .select("*")\
            .eq("group_id", group_id)\
            .order("joined_at")\
            .execute()
        members = result.data or []
        if not members:
            return []
        profiles_result = self.supabase.table("profiles")\
            .select("id, username, avatar_url, bike_model")\
            .in_("id", [m["user_id"] for m in members])\
            .execute()
        profiles = {p["id"]: p for p in profiles_result.data or []}
        responses = []
        for member in members:
            profile = profiles.get(member["user_id"], {})
            responses.append(GroupMemberResponse(
                group_id=member["group_id"],
                user_id=member["user_id"],
                role=member["role"],
                joined_at=member.get("joined_at"),
                username=profile.get("username"),
                avatar_url=profile.get("avatar_url"),
                bike_model=profile.get("bike_model"),
            ))
        return responses

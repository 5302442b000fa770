"""
Core dependencies for route protection and membership checks
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    return auth_service.get_current_user(token)


def get_user_group_ids(user_id: str, supabase: Client) -> List[str]:
    """Return group_ids from group_members for the given user."""
    result = supabase.table("group_members")\
        .select("group_id")\
        .eq("user_id", user_id)\
        .execute()
    return [g["group_id"] for g in result.data or []]


def get_membership_role(group_id: str, user_id: str, supabase: Client):
    result = supabase.table("group_members")\
        .select("role")\
        .eq("group_id", group_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    if not result.data:
        return None
    return result.data[0]["role"]


def check_group_member(group_id: str, user_id: str, supabase: Client) -> str:
    """Check that user is a member of a group; returns the membership role"""
    group_result = supabase.table("groups")\
        .select("id")\
        .eq("id", group_id)\
        .limit(1)\
        .execute()
    if not group_result.data:
        raise NotFoundError("Group not found")

    role = get_membership_role(group_id, user_id, supabase)
    if role is None:
        raise PermissionDeniedError("You must be a member of this group")
    return role


def check_group_admin(group_id: str, user_id: str, supabase: Client) -> str:
    """Check that user is an admin of a group"""
    role = check_group_member(group_id, user_id, supabase)
    if role != "admin":
        raise PermissionDeniedError("You must be a group admin to perform this action")
    return role


def check_ride_access(ride_id: str, user_id: str, supabase: Client) -> dict:
    """Return the ride row if the user belongs to the ride's group"""
    ride_result = supabase.table("rides")\
        .select("*")\
        .eq("id", ride_id)\
        .limit(1)\
        .execute()
    if not ride_result.data:
        raise NotFoundError("Ride not found")
    ride = ride_result.data[0]
    if get_membership_role(ride["group_id"], user_id, supabase) is None:
        raise PermissionDeniedError("You must be a member of this ride's group")
    return ride

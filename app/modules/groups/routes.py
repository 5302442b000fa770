from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.groups.schemas import (
    GroupCreate, GroupRename, JoinGroupRequest, GroupResponse, MyGroupResponse,
    GroupMemberResponse, LeaveGroupResponse
)
from app.modules.groups.service import GroupService
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_user_id, check_group_admin, check_group_member
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase)
) -> GroupService:
    return GroupService(supabase, notifications=NotificationService(service_supabase))


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the creator becomes its admin"""
    return service.create_group(group_data, user_data["id"])


@router.get("", response_model=List[MyGroupResponse])
async def list_groups(
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """List groups the current user is a member of"""
    return service.list_groups(user_data["id"])


@router.post("/join", response_model=GroupResponse)
async def join_group(
    join_data: JoinGroupRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Join a group with its invite code (case-insensitive)"""
    return service.join_group(join_data.invite_code, user_data["id"])


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Get group by ID (only if user is a member)"""
    check_group_member(group_id, user_data["id"], supabase)
    return service.get_group_by_id(group_id)


@router.patch("/{group_id}", response_model=GroupResponse)
async def rename_group(
    group_id: str,
    group_data: GroupRename,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Rename group (group admins only)"""
    check_group_admin(group_id, user_data["id"], supabase)
    return service.rename_group(group_id, group_data)


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """List all members of a group (only if user is a member)"""
    check_group_member(group_id, user_data["id"], supabase)
    return service.list_members(group_id)


@router.post("/{group_id}/leave", response_model=LeaveGroupResponse)
async def leave_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Leave a group; is_last_group=true means the user has no group left"""
    return service.leave_group(group_id, user_data["id"])

from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.notifications.schemas import (
    FanOutRequest, FanOutResult, NotificationResponse, NotificationListResponse
)
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_user_id, check_group_member, check_ride_access
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


def get_fan_out_service(supabase: Client = Depends(get_service_supabase)) -> NotificationService:
    # Service role: recipients are other users, so RLS would reject the inserts
    return NotificationService(supabase)


@router.post("", response_model=FanOutResult)
async def fan_out(
    request: FanOutRequest,
    user_data: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_service_supabase),
    service: NotificationService = Depends(get_fan_out_service)
):
    """Create one notification per target of the event (group members or ride creator)"""
    # Callers may only notify groups they belong to
    if request.group_id:
        check_group_member(request.group_id, user_data["id"], supabase)
    elif request.ride_id:
        check_ride_access(request.ride_id, user_data["id"], supabase)
    return service.fan_out(request)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = 20,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Latest notifications of the current user"""
    return service.list_notifications(user_data["id"], limit=limit)


@router.post("/read-all")
async def mark_all_read(
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark every unread notification of the current user as read"""
    return {"updated": service.mark_all_read(user_data["id"])}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark a notification as read"""
    return service.mark_read(notification_id, user_data["id"])

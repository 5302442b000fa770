from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.participants.schemas import RsvpRequest, RsvpResult, ParticipantResponse, RsvpSummary
from app.modules.participants.service import ParticipantService
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_user_id, check_ride_access
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/rides", tags=["participants"])


def get_participant_service(
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase)
) -> ParticipantService:
    return ParticipantService(supabase, notifications=NotificationService(service_supabase))


@router.post("/{ride_id}/rsvp", response_model=RsvpResult)
async def submit_rsvp(
    ride_id: str,
    rsvp: RsvpRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: ParticipantService = Depends(get_participant_service),
    supabase: Client = Depends(get_supabase)
):
    """Answer a ride; sending the current status again withdraws the answer"""
    check_ride_access(ride_id, user_data["id"], supabase)
    return service.submit_rsvp(ride_id, user_data["id"], rsvp.status)


@router.get("/{ride_id}/rsvp", response_model=RsvpResult)
async def get_my_rsvp(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ParticipantService = Depends(get_participant_service),
    supabase: Client = Depends(get_supabase)
):
    """Current user's answer for the ride (status null when not answered)"""
    check_ride_access(ride_id, user_data["id"], supabase)
    status = service.get_status(ride_id, user_data["id"])
    return RsvpResult(ride_id=ride_id, user_id=user_data["id"], status=status, action="read")


@router.get("/{ride_id}/participants", response_model=List[ParticipantResponse])
async def list_participants(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ParticipantService = Depends(get_participant_service),
    supabase: Client = Depends(get_supabase)
):
    """List everyone who answered the ride"""
    check_ride_access(ride_id, user_data["id"], supabase)
    return service.list_participants(ride_id)


@router.get("/{ride_id}/participants/summary", response_model=RsvpSummary)
async def participants_summary(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ParticipantService = Depends(get_participant_service),
    supabase: Client = Depends(get_supabase)
):
    """Attending / maybe / declined counts"""
    check_ride_access(ride_id, user_data["id"], supabase)
    return service.summarize(ride_id)

from fastapi import APIRouter, Depends
from app.core.exceptions import PermissionDeniedError
from app.database.supabase_client import get_supabase
from app.modules.profiles.brands import MOTO_BRANDS
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse, BrandResponse
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/brands", response_model=List[BrandResponse])
async def list_brands():
    """Known motorcycle brands and their logos"""
    return MOTO_BRANDS


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(user_data["id"])


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    """Update username, bike (brand + model) and avatar"""
    return service.update_profile(user_data["id"], profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    """Get a profile (only your own or of someone sharing a group with you)"""
    if not service.can_view(user_data["id"], user_id):
        raise PermissionDeniedError("Profile not accessible")
    return service.get_profile(user_id)

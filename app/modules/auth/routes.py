from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, SessionUser
from app.modules.auth.service import AuthService
from app.core.dependencies import security, get_auth_service, get_current_user_id, get_user_group_ids
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a rider; the username seeds their profile"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Email/password login; returns the bearer token for the other endpoints"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    credentials: HTTPAuthorizationCredentials = Security(security),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(credentials.credentials)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=SessionUser)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
):
    """
    Current rider with their username.
    needs_onboarding is true while the rider belongs to no group (create or join one first).
    """
    profile = supabase.table("profiles")\
        .select("username")\
        .eq("id", current_user["id"])\
        .limit(1)\
        .execute()
    username = profile.data[0]["username"] if profile.data else current_user["user_metadata"].get("username")
    return SessionUser(
        id=current_user["id"],
        email=current_user.get("email"),
        username=username,
        needs_onboarding=not get_user_group_ids(current_user["id"], supabase),
    )

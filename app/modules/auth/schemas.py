from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    username: str = Field(min_length=1)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    needs_onboarding: bool

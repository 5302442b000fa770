from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class RsvpStatus(str, Enum):
    ATTENDING = "attending"
    MAYBE = "maybe"
    DECLINED = "declined"


class RsvpRequest(BaseModel):
    status: RsvpStatus


class RsvpResult(BaseModel):
    ride_id: str
    user_id: str
    status: Optional[RsvpStatus] = None  # None: no response
    action: str  # "updated" | "retracted" | "read"


class ParticipantResponse(BaseModel):
    ride_id: str
    user_id: str
    status: RsvpStatus
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    bike_model: Optional[str] = None


class RsvpSummary(BaseModel):
    attending: int = 0
    maybe: int = 0
    declined: int = 0

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, max_length=50)
    avatar_url: Optional[str] = None
    bike_model: Optional[str] = None
    # brand/model take precedence over bike_model when either is sent
    brand: Optional[str] = None
    model: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None
    bike_model: Optional[str] = None
    brand: Optional[str] = None
    brand_logo: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BrandResponse(BaseModel):
    name: str
    logo: str

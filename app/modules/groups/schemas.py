from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class MemberRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class GroupRename(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class JoinGroupRequest(BaseModel):
    invite_code: str = Field(min_length=1)


class GroupResponse(BaseModel):
    id: str
    name: str
    invite_code: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MyGroupResponse(GroupResponse):
    role: MemberRole
    joined_at: Optional[datetime] = None


class GroupMemberResponse(BaseModel):
    group_id: str
    user_id: str
    role: MemberRole
    joined_at: Optional[datetime] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    bike_model: Optional[str] = None

    class Config:
        from_attributes = True


class LeaveGroupResponse(BaseModel):
    group_id: str
    is_last_group: bool

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    NEW_MEMBER = "new_member"
    NEW_RIDE = "new_ride"
    RSVP = "rsvp"
    RIDE_REMINDER = "ride_reminder"


class NotificationMessage(BaseModel):
    type: NotificationType
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    link: Optional[str] = None


class FanOutRequest(BaseModel):
    """Body of POST /notifications; field names follow the web client (camelCase)."""
    model_config = ConfigDict(populate_by_name=True)

    group_id: Optional[str] = Field(default=None, alias="groupId")
    ride_id: Optional[str] = Field(default=None, alias="rideId")
    except_user_id: str = Field(alias="exceptUserId", min_length=1)
    type: NotificationType
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    link: Optional[str] = None

    def message(self) -> NotificationMessage:
        return NotificationMessage(type=self.type, title=self.title, body=self.body, link=self.link)


class FanOutResult(BaseModel):
    ok: bool = True
    count: int = 0


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    body: str
    link: Optional[str] = None
    read: bool = False
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int

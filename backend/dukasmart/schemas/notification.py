from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from dukasmart.models.notification import NotificationAction, NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] | None
    is_read: bool
    action_type: NotificationAction | None
    action_label: str | None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    unread_count: int


class NotificationActionRequest(BaseModel):
    action_type: NotificationAction | None = None
    data: dict[str, Any] | None = None


class NotificationActionResponse(BaseModel):
    success: bool = True
    action_type: NotificationAction | None


class NotificationUpdateResponse(BaseModel):
    success: bool = True
    updated: int = 0

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.notification import NotificationType


class NotificationCreate(BaseModel):
    user_id: UUID
    type: NotificationType
    message: str = Field(min_length=1)
    related_document_id: UUID | None = None


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    sender_id: UUID | None = None
    type: str
    message: str
    related_document_id: UUID | None = None
    is_read: bool
    read_at: datetime | None = None
    sender_name: str | None = None
    document_title: str | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int
    limit: int
    offset: int


class MarkReadRequest(BaseModel):
    notification_ids: list[UUID] | None = None

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    user_id: UUID
    action: str
    details: dict[str, Any] | None = None
    user_name: str | None = None
    document_title: str | None = None
    created_at: datetime


class ActivityStats(BaseModel):
    today: int
    this_week: int
    this_month: int


class ActivityFeed(BaseModel):
    items: list[ActivityRead]
    count: int
    limit: int
    stats: ActivityStats


class DashboardStats(BaseModel):
    total_documents: int
    assigned_to_user: int
    recent_activity: int

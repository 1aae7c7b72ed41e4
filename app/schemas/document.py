from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.document import AssignmentStatus, DocumentStatus


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class DocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    status: str | None = None


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    file_path: str
    file_name: str
    file_size: int
    mime_type: str
    status: DocumentStatus
    uploaded_by: UUID
    assigned_to_user: UUID | None = None
    assigned_to_department: UUID | None = None
    locked_by: UUID | None = None
    locked_at: datetime | None = None
    lock_active: bool = False
    uploader_name: str | None = None
    assigned_user_name: str | None = None
    assigned_department_name: str | None = None
    locked_by_name: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


class AssignRequest(BaseModel):
    assigned_to: UUID
    give_lock: bool = False
    notify: bool = True
    roles: str | None = Field(default=None, max_length=120)


class AssignmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    assigned_to: UUID
    assigned_by: UUID
    department_id: UUID | None = None
    roles: str | None = None
    status: AssignmentStatus
    notified_at: datetime | None = None
    assigned_to_name: str | None = None
    assigned_by_name: str | None = None
    created_at: datetime
    updated_at: datetime


class DocumentDetail(DocumentRead):
    assignments: list[AssignmentRead] = Field(default_factory=list)


class AssignResponse(BaseModel):
    assignment: AssignmentRead
    document: DocumentRead


class LockResponse(BaseModel):
    document_id: UUID
    locked_by: UUID
    locked_at: datetime
    expires_at: datetime

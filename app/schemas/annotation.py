from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.document import AnnotationType


# ---------------------------------------------------------------------------
# Annotation
# ---------------------------------------------------------------------------


class AnnotationBase(BaseModel):
    document_id: UUID
    page_number: int = Field(default=1, ge=1)
    annotation_type: AnnotationType = AnnotationType.sticky_note
    content: dict[str, Any] = Field(default_factory=dict)
    position_x: float = 0.0
    position_y: float = 0.0


class AnnotationCreate(AnnotationBase):
    sequence_number: int | None = Field(default=None, ge=0)


class AnnotationUpdate(BaseModel):
    page_number: int | None = Field(default=None, ge=1)
    annotation_type: AnnotationType | None = None
    content: dict[str, Any] | None = None
    sequence_number: int | None = Field(default=None, ge=0)
    position_x: float | None = None
    position_y: float | None = None


class AnnotationRead(AnnotationBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    user_name: str | None = None
    sequence_number: int
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# XFDF
# ---------------------------------------------------------------------------


class XfdfUpsert(BaseModel):
    document_id: UUID
    xfdf: str


class XfdfRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    document_id: UUID | None = None
    xfdf: str | None = None
    created_by: UUID | None = None
    updated_by: UUID | None = None
    updated_at: datetime | None = None

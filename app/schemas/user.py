from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    if "@" not in value:
        raise ValueError("Invalid email address")
    return value


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    department_id: UUID | None = None
    role_id: UUID | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    department_id: UUID | None = None
    role_id: UUID | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)


class UserRead(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    department_name: str | None = None
    role_name: str | None = None
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class UserPermissionsUpdate(BaseModel):
    permission_ids: list[UUID]

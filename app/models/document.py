import enum
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import settings
from app.db import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DocumentStatus(enum.Enum):
    active = "active"
    draft = "draft"
    archived = "archived"


class AssignmentStatus(enum.Enum):
    waiting = "waiting"
    assigned = "assigned"
    active = "active"


class AnnotationType(enum.Enum):
    sticky_note = "sticky_note"
    drawing = "drawing"
    highlight = "highlight"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_uploaded_by", "uploaded_by"),
        Index("ix_documents_assigned_to_user", "assigned_to_user"),
        Index("ix_documents_assigned_to_department", "assigned_to_department"),
        Index("ix_documents_status", "status"),
        CheckConstraint(
            "assigned_to_user IS NULL OR assigned_to_department IS NULL",
            name="ck_documents_single_assignee",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus), default=DocumentStatus.active
    )

    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    # Denormalized "latest" pointer over document_assignments.
    assigned_to_user: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    assigned_to_department: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id")
    )
    locked_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    uploader = relationship("User", foreign_keys=[uploaded_by])
    assigned_user = relationship("User", foreign_keys=[assigned_to_user])
    assigned_department = relationship(
        "Department", foreign_keys=[assigned_to_department]
    )
    lock_holder = relationship("User", foreign_keys=[locked_by])
    assignments = relationship(
        "DocumentAssignment",
        back_populates="document",
        order_by="DocumentAssignment.created_at.desc()",
    )

    @property
    def uploader_name(self) -> str | None:
        return self.uploader.name if self.uploader else None

    @property
    def assigned_user_name(self) -> str | None:
        return self.assigned_user.name if self.assigned_user else None

    @property
    def assigned_department_name(self) -> str | None:
        return self.assigned_department.name if self.assigned_department else None

    @property
    def locked_by_name(self) -> str | None:
        return self.lock_holder.name if self.lock_holder else None

    @property
    def lock_expires_at(self) -> datetime | None:
        if self.locked_by is None or self.locked_at is None:
            return None
        locked_at = self.locked_at
        if locked_at.tzinfo is None:
            locked_at = locked_at.replace(tzinfo=timezone.utc)
        return locked_at + timedelta(seconds=settings.lock_ttl_seconds)

    @property
    def lock_active(self) -> bool:
        expires_at = self.lock_expires_at
        return expires_at is not None and datetime.now(timezone.utc) <= expires_at


# ---------------------------------------------------------------------------
# Assignment history (append-only)
# ---------------------------------------------------------------------------


class DocumentAssignment(Base):
    __tablename__ = "document_assignments"
    __table_args__ = (
        Index("ix_document_assignments_document_id", "document_id"),
        Index("ix_document_assignments_assigned_to", "assigned_to"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id"), nullable=False
    )
    assigned_to: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    assigned_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id")
    )
    roles: Mapped[str | None] = mapped_column(String(120))
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(AssignmentStatus), default=AssignmentStatus.waiting
    )
    notified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    document = relationship("Document", back_populates="assignments")
    assignee = relationship("User", foreign_keys=[assigned_to])
    assigner = relationship("User", foreign_keys=[assigned_by])

    @property
    def assigned_to_name(self) -> str | None:
        return self.assignee.name if self.assignee else None

    @property
    def assigned_by_name(self) -> str | None:
        return self.assigner.name if self.assigner else None


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


class Annotation(Base):
    __tablename__ = "annotations"
    __table_args__ = (
        Index("ix_annotations_document_id", "document_id"),
        Index("ix_annotations_user_id", "user_id"),
        Index("ix_annotations_document_page", "document_id", "page_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    page_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    annotation_type: Mapped[AnnotationType] = mapped_column(
        Enum(AnnotationType), default=AnnotationType.sticky_note
    )
    content: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    position_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    position_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    document = relationship("Document")
    author = relationship("User", foreign_keys=[user_id])

    @property
    def user_name(self) -> str | None:
        return self.author.name if self.author else None


class DocumentAnnotationXfdf(Base):
    __tablename__ = "document_annotations_xfdf"
    __table_args__ = (
        UniqueConstraint("document_id", name="uq_document_annotations_xfdf_document"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id"), nullable=False
    )
    xfdf: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    document = relationship("Document")

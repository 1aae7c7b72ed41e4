from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.models.department import Department
from app.models.document import (
    AssignmentStatus,
    Document,
    DocumentAssignment,
    DocumentStatus,
)
from app.models.notification import ActivityAction, NotificationType
from app.models.user import User
from app.schemas.document import DocumentUpdate
from app.services import file_storage
from app.services.activity import log_activity
from app.services.auth import is_admin
from app.services.common import apply_ordering, apply_pagination, coerce_uuid, utcnow
from app.services.notification import notify
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

_VALID_STATUSES = {e.value for e in DocumentStatus}

UPLOAD_ROLE_LABEL = "Author"


@dataclass
class DocumentUpload:
    title: str
    description: str | None = None
    assigned_to_user: str | None = None
    assigned_to_department: str | None = None
    roles: str | None = None


def _document_options():
    return (
        selectinload(Document.uploader),
        selectinload(Document.assigned_user),
        selectinload(Document.assigned_department),
        selectinload(Document.lock_holder),
    )


def _visible_to(stmt, viewer: User | None):
    if viewer is None or settings.document_visibility != "scoped" or is_admin(viewer):
        return stmt
    conditions = [
        Document.uploaded_by == viewer.id,
        Document.assigned_to_user == viewer.id,
        Document.id.in_(
            select(DocumentAssignment.document_id).where(
                DocumentAssignment.assigned_to == viewer.id
            )
        ),
    ]
    if viewer.department_id is not None:
        conditions.append(Document.assigned_to_department == viewer.department_id)
    return stmt.where(or_(*conditions))


def _record_initial_assignment(
    db: Session, document: Document, uploader_id, roles: str | None
) -> DocumentAssignment:
    assignment = DocumentAssignment(
        document_id=document.id,
        assigned_to=document.assigned_to_user,
        assigned_by=uploader_id,
        roles=roles or UPLOAD_ROLE_LABEL,
        status=AssignmentStatus.assigned,
        notified_at=utcnow(),
    )
    db.add(assignment)
    return assignment


def _compensate_upload(db: Session, document_id, stored: file_storage.StoredFile) -> None:
    try:
        leftover = db.get(Document, document_id)
        if leftover is not None:
            db.delete(leftover)
            db.commit()
            logger.warning("Removed partially created document %s", document_id)
    except Exception:
        db.rollback()
        logger.exception("Failed to remove partially created document %s", document_id)
    try:
        file_storage.delete_document_file(stored.url)
    except OSError:
        logger.exception("Failed to remove stored file %s", stored.url)


class Documents(ListResponseMixin):
    @staticmethod
    def upload(
        db: Session,
        uploader_id,
        meta: DocumentUpload,
        content: bytes,
        filename: str | None,
        content_type: str | None,
    ) -> Document:
        uploader_uuid = coerce_uuid(uploader_id)
        title = (meta.title or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")
        user_uuid = coerce_uuid(meta.assigned_to_user or None)
        department_uuid = coerce_uuid(meta.assigned_to_department or None)
        if user_uuid is not None and department_uuid is not None:
            raise HTTPException(
                status_code=400,
                detail="Assign to a user or a department, not both",
            )
        if user_uuid is not None and not db.get(User, user_uuid):
            raise HTTPException(status_code=404, detail="Assigned user not found")
        if department_uuid is not None and not db.get(Department, department_uuid):
            raise HTTPException(status_code=404, detail="Assigned department not found")

        stored = file_storage.save_document(content, filename, content_type)

        document = Document(
            id=uuid.uuid4(),
            title=title,
            description=meta.description,
            file_path=stored.url,
            file_name=stored.file_name,
            file_size=stored.size,
            mime_type=stored.mime_type,
            uploaded_by=uploader_uuid,
            assigned_to_user=user_uuid,
            assigned_to_department=department_uuid,
            status=DocumentStatus.active,
        )
        document_id = document.id
        try:
            db.add(document)
            db.flush()
            if user_uuid is not None:
                _record_initial_assignment(db, document, uploader_uuid, meta.roles)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Upload of %s failed, compensating", stored.url)
            _compensate_upload(db, document_id, stored)
            raise
        db.refresh(document)
        logger.info("Uploaded document %s", document.id)

        if department_uuid is not None:
            assignment_type = "department"
        elif user_uuid is not None:
            assignment_type = "user"
        else:
            assignment_type = "none"
        log_activity(
            document.id,
            uploader_uuid,
            ActivityAction.document_uploaded.value,
            {"title": document.title, "assignment_type": assignment_type},
        )
        if user_uuid is not None:
            notify(
                user_uuid,
                NotificationType.document_assigned,
                f'New document "{document.title}" has been assigned to you',
                related_document_id=document.id,
                sender_id=uploader_uuid,
            )
        return document

    @staticmethod
    def get(db: Session, document_id: str, viewer: User | None = None) -> Document:
        doc_uuid = coerce_uuid(document_id)
        stmt = _visible_to(
            select(Document)
            .options(*_document_options(), selectinload(Document.assignments))
            .where(Document.id == doc_uuid),
            viewer,
        )
        document = db.scalar(stmt)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")
        return document

    @staticmethod
    def list(
        db: Session,
        viewer: User | None,
        status: str | None,
        uploaded_by: str | None,
        assigned_to_user: str | None,
        assigned_to_department: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Document]:
        stmt = select(Document).options(*_document_options())
        if status is not None:
            if status not in _VALID_STATUSES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid status. Allowed: {sorted(_VALID_STATUSES)}",
                )
            stmt = stmt.where(Document.status == DocumentStatus(status))
        if uploaded_by is not None:
            stmt = stmt.where(Document.uploaded_by == coerce_uuid(uploaded_by))
        if assigned_to_user is not None:
            stmt = stmt.where(Document.assigned_to_user == coerce_uuid(assigned_to_user))
        if assigned_to_department is not None:
            stmt = stmt.where(
                Document.assigned_to_department == coerce_uuid(assigned_to_department)
            )
        stmt = _visible_to(stmt, viewer)
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {
                "created_at": Document.created_at,
                "title": Document.title,
                "updated_at": Document.updated_at,
            },
        )
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def update(
        db: Session, document_id: str, payload: DocumentUpdate, actor: User
    ) -> Document:
        document = Documents.get(db, document_id, actor)
        data = payload.model_dump(exclude_unset=True)

        if "title" in data:
            title = (data["title"] or "").strip()
            if not title:
                raise HTTPException(status_code=400, detail="Title is required")
            data["title"] = title
        if "status" in data:
            if data["status"] not in _VALID_STATUSES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid status. Allowed: {sorted(_VALID_STATUSES)}",
                )
            data["status"] = DocumentStatus(data["status"])

        for key, value in data.items():
            setattr(document, key, value)

        db.commit()
        db.refresh(document)
        logger.info("Updated document %s", document.id)
        log_activity(
            document.id,
            actor.id,
            ActivityAction.document_updated.value,
            {"changed_fields": sorted(data.keys())},
        )
        return document


documents = Documents()

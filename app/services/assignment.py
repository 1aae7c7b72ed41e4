import logging
from datetime import datetime, timedelta

from fastapi import HTTPException
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.models.document import AssignmentStatus, Document, DocumentAssignment
from app.models.notification import ActivityAction, NotificationType
from app.models.user import User
from app.services.activity import log_activity
from app.services.common import as_utc, coerce_uuid, utcnow
from app.services.notification import notify

logger = logging.getLogger(__name__)

DEFAULT_ROLE_LABEL = "Editor"


def lock_ttl() -> timedelta:
    return timedelta(seconds=settings.lock_ttl_seconds)


def is_lock_owned_by(document: Document, user_id, now: datetime | None = None) -> bool:
    """True while ``user_id`` holds an unexpired lock on ``document``."""
    if document.locked_by is None or document.locked_at is None:
        return False
    now = now or utcnow()
    if as_utc(document.locked_at) + lock_ttl() < now:
        return False
    return document.locked_by == coerce_uuid(user_id)


def is_locked_by_other(document: Document, user_id, now: datetime | None = None) -> bool:
    if document.locked_by is None or document.locked_at is None:
        return False
    now = now or utcnow()
    if as_utc(document.locked_at) + lock_ttl() < now:
        return False
    return document.locked_by != coerce_uuid(user_id)


class Assignments:
    @staticmethod
    def holds_baton(db: Session, document: Document, caller_id) -> bool:
        """Whether ``caller_id`` may pass ``document`` on.

        Anyone may assign an unassigned document. Otherwise the caller must be
        the assigned user, or a member of the assigned department.
        """
        caller_uuid = coerce_uuid(caller_id)
        if document.assigned_to_user is not None:
            return document.assigned_to_user == caller_uuid
        if document.assigned_to_department is not None:
            caller = db.get(User, caller_uuid)
            return (
                caller is not None
                and caller.department_id == document.assigned_to_department
            )
        return True

    @staticmethod
    def assign(
        db: Session,
        document_id: str,
        caller_id,
        assignee_id,
        give_lock: bool = False,
        notify_assignee: bool = True,
        roles: str | None = None,
    ) -> tuple[DocumentAssignment, Document]:
        doc_uuid = coerce_uuid(document_id)
        caller_uuid = coerce_uuid(caller_id)
        assignee_uuid = coerce_uuid(assignee_id)

        document = db.get(Document, doc_uuid)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")
        if assignee_uuid == caller_uuid:
            raise HTTPException(
                status_code=400, detail="Cannot assign a document to yourself"
            )
        if not db.get(User, assignee_uuid):
            raise HTTPException(status_code=404, detail="Assignee not found")

        if not Assignments.holds_baton(db, document, caller_uuid):
            raise HTTPException(
                status_code=403,
                detail="Only the current assignee can reassign this document",
            )

        now = utcnow()
        assignment = DocumentAssignment(
            document_id=doc_uuid,
            assigned_to=assignee_uuid,
            assigned_by=caller_uuid,
            roles=roles or DEFAULT_ROLE_LABEL,
            status=AssignmentStatus.assigned if notify_assignee else AssignmentStatus.waiting,
            notified_at=now if notify_assignee else None,
        )
        db.add(assignment)
        document.assigned_to_user = assignee_uuid
        document.assigned_to_department = None
        if give_lock:
            document.locked_by = assignee_uuid
            document.locked_at = now
        db.commit()
        db.refresh(assignment)
        db.refresh(document)
        logger.info(
            "Assigned document %s to user %s by user %s",
            document_id,
            assignee_uuid,
            caller_uuid,
        )

        log_activity(
            doc_uuid,
            caller_uuid,
            ActivityAction.document_assigned.value,
            {
                "assigned_to": str(assignee_uuid),
                "roles": assignment.roles,
                "give_lock": give_lock,
            },
        )
        if notify_assignee:
            notify(
                assignee_uuid,
                NotificationType.document_assigned,
                f'Document "{document.title}" has been assigned to you',
                related_document_id=doc_uuid,
                sender_id=caller_uuid,
            )
        return assignment, document

    @staticmethod
    def acquire_lock(db: Session, document_id: str, user_id) -> Document:
        doc_uuid = coerce_uuid(document_id)
        user_uuid = coerce_uuid(user_id)
        document = db.get(Document, doc_uuid)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")

        now = utcnow()
        result = db.execute(
            update(Document)
            .where(
                Document.id == doc_uuid,
                or_(
                    Document.locked_by.is_(None),
                    Document.locked_by == user_uuid,
                    Document.locked_at.is_(None),
                    Document.locked_at < now - lock_ttl(),
                ),
            )
            .values(locked_by=user_uuid, locked_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            db.refresh(document)
            raise HTTPException(
                status_code=423,
                detail={
                    "code": "locked",
                    "message": "Locked",
                    "details": {
                        "locked_by": str(document.locked_by),
                        "locked_at": as_utc(document.locked_at).isoformat(),
                    },
                },
            )
        db.commit()
        db.refresh(document)
        logger.info("User %s locked document %s", user_uuid, doc_uuid)
        log_activity(doc_uuid, user_uuid, ActivityAction.document_locked.value, {})
        return document

    @staticmethod
    def list_assignments(db: Session, document_id: str) -> list[DocumentAssignment]:
        doc_uuid = coerce_uuid(document_id)
        if not db.get(Document, doc_uuid):
            raise HTTPException(status_code=404, detail="Document not found")
        stmt = (
            select(DocumentAssignment)
            .options(
                selectinload(DocumentAssignment.assignee),
                selectinload(DocumentAssignment.assigner),
            )
            .where(DocumentAssignment.document_id == doc_uuid)
            .order_by(DocumentAssignment.created_at.desc(), DocumentAssignment.id.desc())
        )
        return list(db.scalars(stmt).all())


assignments = Assignments()

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.document import Document, DocumentAssignment
from app.services.common import coerce_uuid, utcnow


def stats(db: Session, user_id, now: datetime | None = None) -> dict[str, int]:
    """Per-user counters shown on the dashboard.

    ``assigned_to_user`` reads the denormalized pointer on documents, which
    always mirrors the newest assignment row.
    """
    user_uuid = coerce_uuid(user_id)
    now = now or utcnow()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

    ever_assigned = select(DocumentAssignment.document_id).where(
        DocumentAssignment.assigned_to == user_uuid
    )
    total_documents = db.scalar(
        select(func.count(Document.id)).where(
            (Document.uploaded_by == user_uuid) | Document.id.in_(ever_assigned)
        )
    )
    assigned_to_user = db.scalar(
        select(func.count(Document.id)).where(Document.assigned_to_user == user_uuid)
    )
    recent_activity = db.scalar(
        select(func.count(DocumentAssignment.id)).where(
            DocumentAssignment.assigned_to == user_uuid,
            DocumentAssignment.created_at >= day_start,
        )
    )
    return {
        "total_documents": total_documents or 0,
        "assigned_to_user": assigned_to_user or 0,
        "recent_activity": recent_activity or 0,
    }

import logging

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.models.document import Annotation, Document, DocumentAnnotationXfdf
from app.models.notification import ActivityAction, NotificationType
from app.schemas.annotation import AnnotationCreate, AnnotationUpdate
from app.services.activity import log_activity
from app.services.common import coerce_uuid, utcnow
from app.services.notification import notify

logger = logging.getLogger(__name__)


def _next_sequence_number(db: Session, document_id) -> int:
    current = db.scalar(
        select(func.max(Annotation.sequence_number)).where(
            Annotation.document_id == document_id
        )
    )
    return (current or 0) + 1


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


class Annotations:
    @staticmethod
    def create(db: Session, author_id, payload: AnnotationCreate) -> Annotation:
        author_uuid = coerce_uuid(author_id)
        document = db.get(Document, payload.document_id)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")

        data = payload.model_dump()
        if data["sequence_number"] is None:
            data["sequence_number"] = _next_sequence_number(db, document.id)
        annotation = Annotation(user_id=author_uuid, **data)
        db.add(annotation)
        db.commit()
        db.refresh(annotation)
        logger.info("Created annotation %s on document %s", annotation.id, document.id)

        log_activity(
            document.id,
            author_uuid,
            ActivityAction.annotation_added.value,
            {
                "annotation_id": str(annotation.id),
                "page_number": annotation.page_number,
                "annotation_type": annotation.annotation_type.value,
            },
        )
        if document.assigned_to_user and document.assigned_to_user != author_uuid:
            notify(
                document.assigned_to_user,
                NotificationType.annotation_added,
                f'A new annotation was added to "{document.title}"',
                related_document_id=document.id,
                sender_id=author_uuid,
            )
        return annotation

    @staticmethod
    def get(db: Session, annotation_id: str) -> Annotation:
        annotation = db.get(Annotation, coerce_uuid(annotation_id))
        if not annotation:
            raise HTTPException(status_code=404, detail="Annotation not found")
        return annotation

    @staticmethod
    def list(
        db: Session, document_id: str, page_number: int | None = None
    ) -> list[Annotation]:
        stmt = (
            select(Annotation)
            .options(selectinload(Annotation.author))
            .where(Annotation.document_id == coerce_uuid(document_id))
        )
        if page_number is not None:
            stmt = stmt.where(Annotation.page_number == page_number)
        stmt = stmt.order_by(
            Annotation.sequence_number.asc(),
            Annotation.created_at.asc(),
            Annotation.id.asc(),
        )
        return list(db.scalars(stmt).all())

    @staticmethod
    def _owned(db: Session, annotation_id: str, caller_id) -> Annotation:
        annotation = Annotations.get(db, annotation_id)
        if annotation.user_id != coerce_uuid(caller_id):
            raise HTTPException(
                status_code=403,
                detail="Only the author can modify this annotation",
            )
        return annotation

    @staticmethod
    def update(
        db: Session, annotation_id: str, caller_id, payload: AnnotationUpdate
    ) -> Annotation:
        annotation = Annotations._owned(db, annotation_id, caller_id)
        data = payload.model_dump(exclude_unset=True)
        for key, value in data.items():
            if value is not None:
                setattr(annotation, key, value)
        db.commit()
        db.refresh(annotation)
        logger.info("Updated annotation %s", annotation_id)
        return annotation

    @staticmethod
    def delete(db: Session, annotation_id: str, caller_id) -> None:
        annotation = Annotations._owned(db, annotation_id, caller_id)
        db.delete(annotation)
        db.commit()
        logger.info("Deleted annotation %s", annotation_id)


# ---------------------------------------------------------------------------
# XFDF blobs
# ---------------------------------------------------------------------------


class XfdfAnnotations:
    @staticmethod
    def get(db: Session, document_id: str) -> DocumentAnnotationXfdf | None:
        return db.scalar(
            select(DocumentAnnotationXfdf).where(
                DocumentAnnotationXfdf.document_id == coerce_uuid(document_id)
            )
        )

    @staticmethod
    def put(db: Session, document_id: str, author_id, xfdf: str) -> DocumentAnnotationXfdf:
        doc_uuid = coerce_uuid(document_id)
        author_uuid = coerce_uuid(author_id)
        if not db.get(Document, doc_uuid):
            raise HTTPException(status_code=404, detail="Document not found")
        row = XfdfAnnotations.get(db, doc_uuid)
        if row is None:
            row = DocumentAnnotationXfdf(document_id=doc_uuid)
            db.add(row)
        row.xfdf = xfdf
        row.created_by = author_uuid
        row.updated_by = author_uuid
        row.updated_at = utcnow()
        db.commit()
        db.refresh(row)
        logger.info("Saved XFDF for document %s", doc_uuid)
        return row


annotations = Annotations()
xfdf_annotations = XfdfAnnotations()

from __future__ import annotations

import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, selectinload

from app.db import SessionLocal
from app.models.document import Document
from app.models.notification import Notification, NotificationType
from app.models.user import User
from app.schemas.notification import NotificationCreate
from app.services.common import apply_pagination, coerce_uuid, utcnow

logger = logging.getLogger(__name__)


def notify(
    recipient_id,
    notification_type: NotificationType | str,
    message: str,
    related_document_id=None,
    sender_id=None,
) -> Notification | None:
    """Create a notification in its own session.

    Runs after the caller's primary write has committed. Failures are logged
    and swallowed so they never undo or fail the primary operation.
    """
    if isinstance(notification_type, NotificationType):
        notification_type = notification_type.value
    session = SessionLocal()
    try:
        notification = Notification(
            user_id=coerce_uuid(recipient_id),
            sender_id=coerce_uuid(sender_id),
            type=notification_type,
            message=message,
            related_document_id=coerce_uuid(related_document_id),
        )
        session.add(notification)
        session.commit()
        logger.info(
            "Sent %s notification to user %s", notification_type, recipient_id
        )
        return notification
    except Exception:
        session.rollback()
        logger.exception(
            "Failed to send %s notification to user %s",
            notification_type,
            recipient_id,
        )
        return None
    finally:
        session.close()


class Notifications:
    @staticmethod
    def _owned(db: Session, notification_id: str, user_id) -> Notification:
        notification = db.get(Notification, coerce_uuid(notification_id))
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        if notification.user_id != coerce_uuid(user_id):
            raise HTTPException(
                status_code=403, detail="Notification belongs to another user"
            )
        return notification

    @staticmethod
    def create(db: Session, sender_id, payload: NotificationCreate) -> Notification:
        if not db.get(User, payload.user_id):
            raise HTTPException(status_code=404, detail="Recipient not found")
        if payload.related_document_id is not None and not db.get(
            Document, payload.related_document_id
        ):
            raise HTTPException(status_code=404, detail="Document not found")
        notification = Notification(
            user_id=payload.user_id,
            sender_id=coerce_uuid(sender_id),
            type=payload.type.value,
            message=payload.message,
            related_document_id=payload.related_document_id,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info("Created notification %s", notification.id)
        return notification

    @staticmethod
    def list_for_user(
        db: Session,
        user_id,
        unread_only: bool,
        limit: int,
        offset: int,
    ) -> List[Notification]:
        stmt = (
            select(Notification)
            .options(
                selectinload(Notification.sender),
                selectinload(Notification.related_document),
            )
            .where(Notification.user_id == coerce_uuid(user_id))
        )
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def unread_count(db: Session, user_id) -> int:
        return (
            db.scalar(
                select(func.count(Notification.id)).where(
                    Notification.user_id == coerce_uuid(user_id),
                    Notification.is_read.is_(False),
                )
            )
            or 0
        )

    def list_response(
        self, db: Session, user_id, unread_only: bool, limit: int, offset: int
    ) -> dict:
        return {
            "notifications": self.list_for_user(db, user_id, unread_only, limit, offset),
            "unread_count": self.unread_count(db, user_id),
            "limit": limit,
            "offset": offset,
        }

    @staticmethod
    def mark_read(db: Session, notification_id: str, user_id) -> Notification:
        notification = Notifications._owned(db, notification_id, user_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            db.commit()
            db.refresh(notification)
            logger.info("Marked notification %s as read", notification_id)
        return notification

    @staticmethod
    def mark_many_read(db: Session, user_id, notification_ids: List[str] | None) -> int:
        stmt = (
            update(Notification)
            .where(
                Notification.user_id == coerce_uuid(user_id),
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=utcnow())
        )
        if notification_ids is not None:
            ids = [coerce_uuid(nid) for nid in notification_ids]
            if not ids:
                return 0
            stmt = stmt.where(Notification.id.in_(ids))
        result = db.execute(stmt.execution_options(synchronize_session=False))
        db.commit()
        logger.info("Marked %d notifications as read for user %s", result.rowcount, user_id)
        return result.rowcount

    @staticmethod
    def clear_read(db: Session, user_id) -> int:
        result = db.execute(
            delete(Notification)
            .where(
                Notification.user_id == coerce_uuid(user_id),
                Notification.is_read.is_(True),
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Cleared %d read notifications for user %s", result.rowcount, user_id)
        return result.rowcount

    @staticmethod
    def delete(db: Session, notification_id: str, user_id) -> None:
        notification = Notifications._owned(db, notification_id, user_id)
        db.delete(notification)
        db.commit()
        logger.info("Deleted notification %s", notification_id)


notifications = Notifications()

import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.db import SessionLocal
from app.models.notification import ActivityLog
from app.services.common import coerce_uuid, utcnow

logger = logging.getLogger(__name__)


def log_activity(
    document_id, user_id, action: str, details: dict | None = None
) -> ActivityLog | None:
    """Append an activity entry in its own session.

    Runs after the caller's primary write has committed. Failures are logged
    and swallowed so they never undo or fail the primary operation.
    """
    session = SessionLocal()
    try:
        entry = ActivityLog(
            document_id=coerce_uuid(document_id),
            user_id=coerce_uuid(user_id),
            action=action,
            details=details or {},
        )
        session.add(entry)
        session.commit()
        logger.info("Logged activity %s on document %s", action, document_id)
        return entry
    except Exception:
        session.rollback()
        logger.exception(
            "Failed to log activity %s on document %s", action, document_id
        )
        return None
    finally:
        session.close()


def _period_starts(now: datetime) -> tuple[datetime, datetime, datetime]:
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = day_start - timedelta(days=day_start.weekday())
    month_start = day_start.replace(day=1)
    return day_start, week_start, month_start


class Activities:
    @staticmethod
    def list(
        db: Session,
        start: datetime | None,
        end: datetime | None,
        document_id: str | None,
        limit: int,
    ) -> list[ActivityLog]:
        stmt = select(ActivityLog).options(
            selectinload(ActivityLog.user), selectinload(ActivityLog.document)
        )
        if start is not None:
            stmt = stmt.where(ActivityLog.created_at >= start)
        if end is not None:
            stmt = stmt.where(ActivityLog.created_at <= end)
        if document_id is not None:
            stmt = stmt.where(ActivityLog.document_id == coerce_uuid(document_id))
        stmt = stmt.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        return list(db.scalars(stmt.limit(limit)).all())

    @staticmethod
    def stats(db: Session, now: datetime | None = None) -> dict[str, int]:
        now = now or utcnow()
        day_start, week_start, month_start = _period_starts(now)

        def _count_since(since: datetime) -> int:
            return db.scalar(
                select(func.count(ActivityLog.id)).where(
                    ActivityLog.created_at >= since
                )
            ) or 0

        return {
            "today": _count_since(day_start),
            "this_week": _count_since(week_start),
            "this_month": _count_since(month_start),
        }


activities = Activities()

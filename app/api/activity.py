from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.user import User
from app.schemas.activity import ActivityFeed, DashboardStats
from app.services import dashboard as dashboard_service
from app.services.activity import activities

router = APIRouter(tags=["activity"])


@router.get(
    "/activity",
    response_model=ActivityFeed,
    dependencies=[Depends(require_user_auth)],
)
def activity_feed(
    start: datetime | None = None,
    end: datetime | None = None,
    document_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    items = activities.list(db, start, end, document_id, limit)
    return {
        "items": items,
        "count": len(items),
        "limit": limit,
        "stats": activities.stats(db),
    }


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(
    user: User = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return dashboard_service.stats(db, user.id)

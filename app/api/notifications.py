from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.user import User
from app.schemas.notification import (
    MarkReadRequest,
    NotificationCreate,
    NotificationListResponse,
    NotificationRead,
)
from app.services.notification import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=5, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return notifications.list_response(db, user.id, unread_only, limit, offset)


@router.post("", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return notifications.create(db, user.id, payload)


@router.patch("")
def mark_read(
    payload: MarkReadRequest,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    ids = None
    if payload.notification_ids is not None:
        ids = [str(nid) for nid in payload.notification_ids]
    count = notifications.mark_many_read(db, user.id, ids)
    return {"marked": count}


@router.delete("")
def clear_read(
    user: User = Depends(require_user_auth), db: Session = Depends(get_db)
):
    count = notifications.clear_read(db, user.id)
    return {"deleted": count}


@router.patch("/{notification_id}", response_model=NotificationRead)
def mark_one_read(
    notification_id: str,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return notifications.mark_read(db, notification_id, user.id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    notifications.delete(db, notification_id, user.id)

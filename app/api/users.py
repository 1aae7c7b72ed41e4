from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_permission, require_user_auth
from app.models.user import User
from app.schemas.common import ListResponse
from app.schemas.rbac import PermissionRead
from app.schemas.user import UserCreate, UserPermissionsUpdate, UserRead, UserUpdate
from app.services.user import users

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=ListResponse[UserRead],
    dependencies=[Depends(require_user_auth)],
)
def list_users(
    department_id: str | None = None,
    role_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return users.list_response(db, department_id, role_id, limit, offset)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    actor: User = Depends(require_permission("users.manage")),
    db: Session = Depends(get_db),
):
    return users.create(db, payload, actor_id=actor.id)


@router.get(
    "/{user_id}", response_model=UserRead, dependencies=[Depends(require_user_auth)]
)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return users.get(db, user_id)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_permission("users.manage"))],
)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    return users.update(db, user_id, payload)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("users.manage"))],
)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    users.delete(db, user_id)


@router.get(
    "/{user_id}/permissions",
    response_model=list[PermissionRead],
    dependencies=[Depends(require_user_auth)],
)
def user_permissions(user_id: str, db: Session = Depends(get_db)):
    return users.permissions(db, user_id)


@router.put(
    "/{user_id}/permissions",
    response_model=list[PermissionRead],
    dependencies=[Depends(require_permission("users.manage"))],
)
def set_user_permissions(
    user_id: str, payload: UserPermissionsUpdate, db: Session = Depends(get_db)
):
    return users.set_direct_permissions(db, user_id, payload.permission_ids)

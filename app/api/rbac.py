from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_permission, require_user_auth
from app.schemas.rbac import (
    PermissionCreate,
    PermissionRead,
    RoleCreate,
    RoleDetail,
    RoleRead,
    RoleUpdate,
)
from app.services.rbac import permissions, roles

router = APIRouter(tags=["rbac"])


# ------------------------------------------------------------------
# Roles
# ------------------------------------------------------------------


@router.get(
    "/roles", response_model=list[RoleRead], dependencies=[Depends(require_user_auth)]
)
def list_roles(department_id: str | None = None, db: Session = Depends(get_db)):
    return roles.list(db, department_id)


@router.post(
    "/roles",
    response_model=RoleDetail,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("roles.manage"))],
)
def create_role(payload: RoleCreate, db: Session = Depends(get_db)):
    return roles.create(db, payload)


@router.get(
    "/roles/{role_id}",
    response_model=RoleDetail,
    dependencies=[Depends(require_user_auth)],
)
def get_role(role_id: str, db: Session = Depends(get_db)):
    return roles.get(db, role_id)


@router.patch(
    "/roles/{role_id}",
    response_model=RoleDetail,
    dependencies=[Depends(require_permission("roles.manage"))],
)
def update_role(role_id: str, payload: RoleUpdate, db: Session = Depends(get_db)):
    return roles.update(db, role_id, payload)


@router.delete(
    "/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("roles.manage"))],
)
def delete_role(role_id: str, db: Session = Depends(get_db)):
    roles.delete(db, role_id)


@router.get(
    "/roles/{role_id}/permissions",
    response_model=list[PermissionRead],
    dependencies=[Depends(require_user_auth)],
)
def role_permissions(role_id: str, db: Session = Depends(get_db)):
    return roles.permissions(db, role_id)


# ------------------------------------------------------------------
# Permissions
# ------------------------------------------------------------------


@router.get(
    "/permissions",
    response_model=list[PermissionRead],
    dependencies=[Depends(require_user_auth)],
)
def list_permissions(db: Session = Depends(get_db)):
    return permissions.list(db)


@router.post(
    "/permissions",
    response_model=PermissionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("roles.manage"))],
)
def create_permission(payload: PermissionCreate, db: Session = Depends(get_db)):
    return permissions.create(db, payload)

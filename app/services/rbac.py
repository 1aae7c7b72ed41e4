from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.department import Department
from app.models.rbac import Permission, Role, RolePermission
from app.models.user import User
from app.schemas.rbac import PermissionCreate, RoleCreate, RoleUpdate
from app.services.common import coerce_uuid

logger = logging.getLogger(__name__)


def _replace_permissions(db: Session, role: Role, permission_ids) -> None:
    role.permission_links.clear()
    db.flush()
    for permission_id in dict.fromkeys(coerce_uuid(pid) for pid in permission_ids):
        if not db.get(Permission, permission_id):
            logger.warning(
                "Skipping unknown permission %s for role %s", permission_id, role.id
            )
            continue
        role.permission_links.append(RolePermission(permission_id=permission_id))


class Roles:
    @staticmethod
    def _ensure_unique_name(db: Session, name: str, exclude_id=None) -> None:
        stmt = select(Role.id).where(Role.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Role.id != exclude_id)
        if db.scalar(stmt) is not None:
            raise HTTPException(status_code=409, detail="Role with this name already exists")

    @staticmethod
    def _ensure_department(db: Session, department_id) -> None:
        if department_id is not None and not db.get(Department, department_id):
            raise HTTPException(status_code=404, detail="Department not found")

    @staticmethod
    def create(db: Session, payload: RoleCreate) -> Role:
        name = payload.name.strip()
        Roles._ensure_unique_name(db, name)
        Roles._ensure_department(db, payload.department_id)
        role = Role(
            name=name,
            description=payload.description,
            department_id=payload.department_id,
        )
        db.add(role)
        db.flush()
        _replace_permissions(db, role, payload.permission_ids)
        db.commit()
        db.refresh(role)
        logger.info("Created role %s", role.id)
        return role

    @staticmethod
    def get(db: Session, role_id: str) -> Role:
        role = db.get(Role, coerce_uuid(role_id))
        if not role:
            raise HTTPException(status_code=404, detail="Role not found")
        return role

    @staticmethod
    def list(db: Session, department_id: str | None = None) -> list[Role]:
        stmt = select(Role).options(
            selectinload(Role.department),
            selectinload(Role.permission_links),
            selectinload(Role.users),
        )
        if department_id is not None:
            stmt = stmt.where(Role.department_id == coerce_uuid(department_id))
        return list(db.scalars(stmt.order_by(Role.name.asc())).all())

    @staticmethod
    def update(db: Session, role_id: str, payload: RoleUpdate) -> Role:
        role = Roles.get(db, role_id)
        data = payload.model_dump(exclude_unset=True)
        permission_ids = data.pop("permission_ids", None)
        if data.get("name") is not None:
            data["name"] = data["name"].strip()
            Roles._ensure_unique_name(db, data["name"], exclude_id=role.id)
        elif "name" in data:
            data.pop("name")
        if "department_id" in data:
            Roles._ensure_department(db, data["department_id"])
        for key, value in data.items():
            setattr(role, key, value)
        if permission_ids is not None:
            _replace_permissions(db, role, permission_ids)
        db.commit()
        db.refresh(role)
        logger.info("Updated role %s", role.id)
        return role

    @staticmethod
    def delete(db: Session, role_id: str) -> None:
        role = Roles.get(db, role_id)
        holders = db.scalar(select(func.count(User.id)).where(User.role_id == role.id))
        if holders:
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "dependent",
                    "message": f"Role is held by {holders} user(s) and cannot be deleted",
                },
            )
        db.delete(role)
        db.commit()
        logger.info("Deleted role %s", role_id)

    @staticmethod
    def permissions(db: Session, role_id: str) -> list[Permission]:
        role = Roles.get(db, role_id)
        return sorted(role.permissions, key=lambda p: (p.category, p.name))


class Permissions:
    @staticmethod
    def list(db: Session) -> list[Permission]:
        stmt = select(Permission).order_by(Permission.category.asc(), Permission.name.asc())
        return list(db.scalars(stmt).all())

    @staticmethod
    def create(db: Session, payload: PermissionCreate) -> Permission:
        name = payload.name.strip()
        if Permissions.get_by_name(db, name) is not None:
            raise HTTPException(
                status_code=409, detail="Permission with this name already exists"
            )
        permission = Permission(
            name=name,
            description=payload.description,
            category=payload.category,
        )
        db.add(permission)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=409, detail="Permission with this name already exists"
            )
        db.refresh(permission)
        logger.info("Created permission %s", permission.id)
        return permission

    @staticmethod
    def get_by_name(db: Session, name: str) -> Permission | None:
        return db.scalar(select(Permission).where(Permission.name == name))


roles = Roles()
permissions = Permissions()

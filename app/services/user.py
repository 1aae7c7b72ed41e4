from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.department import Department
from app.models.document import Document
from app.models.rbac import Permission, Role, UserPermission
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate
from app.services.auth import effective_permissions, hash_password
from app.services.common import apply_pagination, coerce_uuid
from app.services.department import adjust_people_count
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def _sync_people_count(db: Session, department_id, delta: int) -> None:
    try:
        adjust_people_count(db, department_id, delta)
    except Exception:
        db.rollback()
        logger.exception(
            "Failed to adjust people_count of department %s by %s",
            department_id,
            delta,
        )


class Users(ListResponseMixin):
    @staticmethod
    def _ensure_unique_email(db: Session, email: str, exclude_id=None) -> None:
        stmt = select(User.id).where(User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if db.scalar(stmt) is not None:
            raise HTTPException(
                status_code=409, detail="User with this email already exists"
            )

    @staticmethod
    def _ensure_references(db: Session, department_id, role_id) -> None:
        if department_id is not None and not db.get(Department, department_id):
            raise HTTPException(status_code=404, detail="Department not found")
        if role_id is not None and not db.get(Role, role_id):
            raise HTTPException(status_code=404, detail="Role not found")

    @staticmethod
    def create(db: Session, payload: UserCreate, actor_id=None) -> User:
        Users._ensure_unique_email(db, payload.email)
        Users._ensure_references(db, payload.department_id, payload.role_id)
        user = User(
            name=payload.name.strip(),
            email=payload.email,
            password_hash=hash_password(payload.password),
            department_id=payload.department_id,
            role_id=payload.role_id,
            created_by=coerce_uuid(actor_id),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=409, detail="User with this email already exists"
            )
        db.refresh(user)
        logger.info("Created user %s", user.id)
        _sync_people_count(db, user.department_id, 1)
        return user

    @staticmethod
    def get(db: Session, user_id: str) -> User:
        user = db.get(User, coerce_uuid(user_id))
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    @staticmethod
    def list(
        db: Session,
        department_id: str | None,
        role_id: str | None,
        limit: int,
        offset: int,
    ) -> list[User]:
        stmt = select(User).options(
            selectinload(User.department), selectinload(User.role)
        )
        if department_id is not None:
            stmt = stmt.where(User.department_id == coerce_uuid(department_id))
        if role_id is not None:
            stmt = stmt.where(User.role_id == coerce_uuid(role_id))
        stmt = stmt.order_by(User.name.asc(), User.id.asc())
        return list(db.scalars(apply_pagination(stmt, limit, offset)).all())

    @staticmethod
    def update(db: Session, user_id: str, payload: UserUpdate) -> User:
        user = Users.get(db, user_id)
        data = payload.model_dump(exclude_unset=True)

        if data.get("email") is not None:
            Users._ensure_unique_email(db, data["email"], exclude_id=user.id)
        elif "email" in data:
            data.pop("email")
        if data.get("name") is not None:
            data["name"] = data["name"].strip()
        elif "name" in data:
            data.pop("name")
        Users._ensure_references(db, data.get("department_id"), data.get("role_id"))

        password = data.pop("password", None)
        if password:
            user.password_hash = hash_password(password)

        previous_department = user.department_id
        for key, value in data.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
        logger.info("Updated user %s", user.id)

        if user.department_id != previous_department:
            _sync_people_count(db, previous_department, -1)
            _sync_people_count(db, user.department_id, 1)
            db.refresh(user)
        return user

    @staticmethod
    def delete(db: Session, user_id: str) -> None:
        user = Users.get(db, user_id)
        assigned = db.scalar(
            select(func.count(Document.id)).where(Document.assigned_to_user == user.id)
        )
        if assigned:
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "dependent",
                    "message": f"User is the current assignee of {assigned} document(s)",
                },
            )
        department_id = user.department_id
        db.execute(delete(UserPermission).where(UserPermission.user_id == user.id))
        db.delete(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "dependent",
                    "message": "User is referenced by other records",
                },
            )
        logger.info("Deleted user %s", user_id)
        _sync_people_count(db, department_id, -1)

    @staticmethod
    def permissions(db: Session, user_id: str) -> list[Permission]:
        return effective_permissions(db, Users.get(db, user_id))

    @staticmethod
    def set_direct_permissions(
        db: Session, user_id: str, permission_ids: list
    ) -> list[Permission]:
        user = Users.get(db, user_id)
        db.execute(delete(UserPermission).where(UserPermission.user_id == user.id))
        for permission_id in dict.fromkeys(coerce_uuid(pid) for pid in permission_ids):
            if not db.get(Permission, permission_id):
                logger.warning("Skipping unknown permission %s", permission_id)
                continue
            db.add(UserPermission(user_id=user.id, permission_id=permission_id))
        db.commit()
        logger.info("Set direct permissions for user %s", user.id)
        return effective_permissions(db, user)


users = Users()

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.rbac import Permission, RolePermission, UserPermission
from app.models.user import User
from app.schemas.auth import SignUpRequest, TokenPayload
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)

# bcrypt ignores everything past 72 bytes and the bcrypt package refuses longer input.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plaintext: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(plaintext), salt).decode("utf-8")


def verify_password(plaintext: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plaintext), hashed.encode("utf-8"))
    except ValueError:
        return False


def issue_token(
    user_id: UUID | str, role: str | None = None, role_id: UUID | str | None = None
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "role_id": str(role_id) if role_id else None,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.jwt_ttl_seconds)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str | None) -> TokenPayload | None:
    if not token:
        return None
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError:
        return None
    try:
        return TokenPayload(
            user_id=claims["sub"],
            role=claims.get("role"),
            role_id=claims.get("role_id"),
        )
    except ValidationError:
        return None


def token_for_user(user: User) -> str:
    return issue_token(user.id, user.role_name, user.role_id)


def authenticate(db: Session, email: str, password: str) -> tuple[User, str]:
    normalized = email.strip().lower()
    user = db.scalar(select(User).where(User.email == normalized))
    if not user or not verify_password(password, user.password_hash):
        logger.info("Rejected sign-in for %s", normalized)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    logger.info("User %s signed in", user.id)
    return user, token_for_user(user)


def register(db: Session, payload: SignUpRequest) -> tuple[User, str]:
    from app.services.user import users

    user = users.create(
        db,
        UserCreate(name=payload.name, email=payload.email, password=payload.password),
    )
    return user, token_for_user(user)


def effective_permissions(db: Session, user: User) -> list[Permission]:
    role_grants = select(RolePermission.permission_id).where(
        RolePermission.role_id == user.role_id
    )
    direct_grants = select(UserPermission.permission_id).where(
        UserPermission.user_id == user.id
    )
    stmt = (
        select(Permission)
        .where(
            Permission.id.in_(role_grants) | Permission.id.in_(direct_grants)
        )
        .order_by(Permission.category.asc(), Permission.name.asc())
    )
    return list(db.scalars(stmt).all())


def is_admin(user: User) -> bool:
    return (user.role_name or "").lower() == "admin"


def has_permission(db: Session, user: User, name: str) -> bool:
    if is_admin(user):
        return True
    return any(permission.name == name for permission in effective_permissions(db, user))

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db
from app.models.user import User
from app.schemas.auth import TokenPayload
from app.services.auth import has_permission, verify_token

logger = logging.getLogger(__name__)


def get_token(request: Request) -> str | None:
    token = request.cookies.get(settings.auth_cookie_name)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_token_payload(token: str | None = Depends(get_token)) -> TokenPayload:
    payload = verify_token(token)
    if payload is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return payload


def require_user_auth(
    payload: TokenPayload = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, payload.user_id)
    if not user:
        logger.info("Token for unknown user %s", payload.user_id)
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_permission(permission_name: str):
    def _require_permission(
        user: User = Depends(require_user_auth),
        db: Session = Depends(get_db),
    ) -> User:
        if not has_permission(db, user, permission_name):
            raise HTTPException(
                status_code=403,
                detail=f"Missing permission: {permission_name}",
            )
        return user

    return _require_permission

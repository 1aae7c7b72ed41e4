from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.config import settings
from app.models.user import User
from app.schemas.auth import SignInRequest, SignUpRequest, TokenResponse
from app.schemas.rbac import PermissionRead
from app.schemas.user import UserRead
from app.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.jwt_ttl_seconds,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post("/signin", response_model=TokenResponse)
def signin(payload: SignInRequest, response: Response, db: Session = Depends(get_db)):
    user, token = auth_service.authenticate(db, payload.email, payload.password)
    _set_auth_cookie(response, token)
    return {"access_token": token, "user": user}


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignUpRequest, response: Response, db: Session = Depends(get_db)):
    user, token = auth_service.register(db, payload)
    _set_auth_cookie(response, token)
    return {"access_token": token, "user": user}


@router.post("/signout")
def signout(response: Response):
    response.delete_cookie(key=settings.auth_cookie_name, path="/")
    return {"success": True}


@router.get("/me", response_model=UserRead)
def me(user: User = Depends(require_user_auth)):
    return user


@router.get("/permissions", response_model=list[PermissionRead])
def my_permissions(
    user: User = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return auth_service.effective_permissions(db, user)

from app.db import get_db
from app.services.auth_dependencies import (
    get_token,
    require_permission,
    require_user_auth,
)

__all__ = [
    "get_db",
    "get_token",
    "require_permission",
    "require_user_auth",
]

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/docassign"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _to_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Auth settings
    jwt_secret: str = os.getenv(
        "JWT_SECRET", "your-super-secret-jwt-key-change-in-production"
    )
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_ttl_seconds: int = int(
        os.getenv("JWT_TTL_SECONDS", str(7 * 24 * 60 * 60))
    )  # 7 days
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    auth_cookie_name: str = os.getenv("AUTH_COOKIE_NAME", "auth-token")
    auth_cookie_secure: bool = _to_bool(os.getenv("AUTH_COOKIE_SECURE", "false"))

    # Upload settings
    upload_dir: str = os.getenv("UPLOAD_DIR", "public/uploads/documents")
    upload_url_prefix: str = os.getenv("UPLOAD_URL_PREFIX", "/uploads/documents")
    upload_max_size_bytes: int = int(
        os.getenv("UPLOAD_MAX_SIZE_BYTES", str(50 * 1024 * 1024))
    )  # 50MB
    upload_allowed_types: str = os.getenv("UPLOAD_ALLOWED_TYPES", "application/pdf")

    # Document workflow
    lock_ttl_seconds: int = int(os.getenv("LOCK_TTL_SECONDS", "180"))
    document_visibility: str = os.getenv("DOCUMENT_VISIBILITY", "all")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "DocAssign")


settings = Settings()

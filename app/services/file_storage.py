import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import HTTPException

from app.config import settings

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF"
READ_CHUNK_SIZE = 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredFile:
    url: str
    path: Path
    file_name: str
    size: int
    mime_type: str


def get_allowed_types() -> set[str]:
    return {t.strip() for t in settings.upload_allowed_types.split(",") if t.strip()}


def sanitize_filename(name: str | None) -> str:
    base = os.path.basename(name or "").strip()
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "document.pdf"


def validate_document(
    content_type: str | None, file_header: bytes, size: int
) -> None:
    allowed_types = get_allowed_types()
    if content_type not in allowed_types:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(allowed_types))}",
        )
    if size == 0:
        raise HTTPException(status_code=400, detail="File is empty")
    if size > settings.upload_max_size_bytes:
        raise _too_large()
    if content_type == "application/pdf" and not file_header.startswith(PDF_SIGNATURE):
        raise HTTPException(
            status_code=400,
            detail="File content does not match declared content type.",
        )


def _too_large() -> HTTPException:
    return HTTPException(
        status_code=413,
        detail=f"File too large. Maximum size: {settings.upload_max_size_bytes // 1024 // 1024}MB",
    )


def read_upload(stream, declared_size: int | None = None) -> bytes:
    """Read an upload stream, refusing anything over the configured limit."""
    limit = settings.upload_max_size_bytes
    if declared_size is not None and declared_size > limit:
        raise _too_large()
    chunks = []
    total = 0
    while True:
        chunk = stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise _too_large()
        chunks.append(chunk)
    return b"".join(chunks)


def save_document(
    content: bytes, filename: str | None, content_type: str | None
) -> StoredFile:
    validate_document(content_type, content[:512], len(content))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    original_name = os.path.basename(filename or "") or "document.pdf"
    stored_name = f"{int(time.time() * 1000)}-{sanitize_filename(original_name)}"
    file_path = upload_dir / stored_name
    if file_path.exists():
        stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{sanitize_filename(original_name)}"
        file_path = upload_dir / stored_name

    with open(file_path, "wb") as f:
        f.write(content)

    logger.info("Stored upload %s (%d bytes)", stored_name, len(content))
    return StoredFile(
        url=f"{settings.upload_url_prefix}/{stored_name}",
        path=file_path,
        file_name=original_name,
        size=len(content),
        mime_type=content_type,
    )


def resolve_path(file_url: str | None) -> Path | None:
    if not file_url or not file_url.startswith(settings.upload_url_prefix + "/"):
        return None
    filename = file_url[len(settings.upload_url_prefix) + 1 :]
    if not filename or "/" in filename or filename in {".", ".."}:
        return None
    return Path(settings.upload_dir) / filename


def delete_document_file(file_url: str | None) -> bool:
    file_path = resolve_path(file_url)
    if file_path is None or not file_path.exists():
        return False
    os.remove(file_path)
    logger.info("Removed stored file %s", file_path.name)
    return True

import io
from dataclasses import replace

import pytest
from fastapi import HTTPException

from app.services import file_storage


class _EndlessStream:
    def __init__(self):
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        return b"x" * size


@pytest.fixture()
def small_limit(monkeypatch):
    monkeypatch.setattr(
        file_storage,
        "settings",
        replace(file_storage.settings, upload_max_size_bytes=64),
    )
    monkeypatch.setattr(file_storage, "READ_CHUNK_SIZE", 16)


class TestReadUpload:
    def test_reads_whole_stream_within_limit(self, small_limit):
        data = b"%PDF" + b"0" * 50
        assert file_storage.read_upload(io.BytesIO(data)) == data

    def test_declared_size_rejected_before_reading(self, small_limit):
        stream = _EndlessStream()
        with pytest.raises(HTTPException) as exc:
            file_storage.read_upload(stream, declared_size=65)
        assert exc.value.status_code == 413
        assert stream.reads == 0

    def test_stops_reading_once_over_limit(self, small_limit):
        stream = _EndlessStream()
        with pytest.raises(HTTPException) as exc:
            file_storage.read_upload(stream)
        assert exc.value.status_code == 413
        assert stream.reads == 5


class TestStoredFiles:
    def test_sanitize_filename(self):
        assert file_storage.sanitize_filename("../../etc/pass wd.pdf") == "pass_wd.pdf"
        assert file_storage.sanitize_filename(None) == "document.pdf"

    def test_resolve_path_rejects_foreign_urls(self):
        assert file_storage.resolve_path("/elsewhere/a.pdf") is None
        prefix = file_storage.settings.upload_url_prefix
        assert file_storage.resolve_path(f"{prefix}/../a.pdf") is None
        assert file_storage.resolve_path(f"{prefix}/a.pdf").name == "a.pdf"

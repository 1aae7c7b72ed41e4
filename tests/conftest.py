import os
import shutil
import tempfile
import uuid

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

_TMP_DIR = tempfile.mkdtemp(prefix="docassign-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["JWT_SECRET"] = "test-secret-key-for-docassign-suite-0123456789"

from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402,F401
from app.config import settings  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.main import app as application  # noqa: E402
from app.models.department import Department  # noqa: E402
from app.models.document import Document, DocumentStatus  # noqa: E402
from app.models.rbac import Role  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.auth import hash_password, issue_token  # noqa: E402

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"
PASSWORD = "password123"


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    engine.dispose()
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    shutil.rmtree(settings.upload_dir, ignore_errors=True)


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db_session):
    def _make_user(name=None, department=None, role=None):
        user = User(
            name=name or f"User {uuid.uuid4().hex[:6]}",
            email=f"user-{uuid.uuid4().hex[:8]}@test.com",
            password_hash=hash_password(PASSWORD),
            department_id=department.id if department else None,
            role_id=role.id if role else None,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_department(db_session):
    def _make_department(name=None, people_count=0):
        department = Department(
            name=name or f"Dept {uuid.uuid4().hex[:6]}",
            people_count=people_count,
        )
        db_session.add(department)
        db_session.commit()
        db_session.refresh(department)
        return department

    return _make_department


@pytest.fixture()
def make_document(db_session):
    def _make_document(uploader, assigned_to_user=None, assigned_to_department=None):
        document = Document(
            title=f"doc_{uuid.uuid4().hex[:8]}",
            file_path="/uploads/documents/test.pdf",
            file_name="test.pdf",
            file_size=1024,
            mime_type="application/pdf",
            uploaded_by=uploader.id,
            assigned_to_user=assigned_to_user.id if assigned_to_user else None,
            assigned_to_department=(
                assigned_to_department.id if assigned_to_department else None
            ),
            status=DocumentStatus.active,
        )
        db_session.add(document)
        db_session.commit()
        db_session.refresh(document)
        return document

    return _make_document


@pytest.fixture()
def person(make_user):
    return make_user(name="Test Person")


@pytest.fixture()
def admin_role(db_session):
    role = Role(name="admin", description="Administrators")
    db_session.add(role)
    db_session.commit()
    db_session.refresh(role)
    return role


@pytest.fixture()
def admin_user(make_user, admin_role):
    return make_user(name="Admin User", role=admin_role)


def _bearer(user):
    token = issue_token(user.id, user.role_name, user.role_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for():
    return _bearer


@pytest.fixture()
def auth_headers(person):
    return _bearer(person)


@pytest.fixture()
def admin_headers(admin_user):
    return _bearer(admin_user)


@pytest.fixture()
def client():
    with TestClient(application) as test_client:
        yield test_client


@pytest.fixture()
def upload_dir():
    return settings.upload_dir


@pytest.fixture()
def pdf_bytes():
    return PDF_BYTES


@pytest.fixture()
def fk_session():
    """Session on the test database with SQLite foreign keys enforced."""
    fk_engine = create_engine(
        settings.database_url, connect_args={"check_same_thread": False}
    )

    @event.listens_for(fk_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    session = sessionmaker(bind=fk_engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        fk_engine.dispose()

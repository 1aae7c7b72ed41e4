import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException

from app.config import settings
from app.models.rbac import Permission, Role, RolePermission, UserPermission
from app.schemas.auth import SignUpRequest
from app.services import auth as auth_service

PASSWORD = "password123"


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = auth_service.hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert auth_service.verify_password("s3cret-pass", hashed)
        assert not auth_service.verify_password("wrong-pass", hashed)

    def test_verify_malformed_hash(self):
        assert not auth_service.verify_password("anything", "not-a-bcrypt-hash")
        assert not auth_service.verify_password("anything", None)

    def test_long_passwords_are_truncated_consistently(self):
        long_password = "x" * 100
        hashed = auth_service.hash_password(long_password)
        assert auth_service.verify_password(long_password, hashed)


class TestTokens:
    def test_round_trip(self):
        user_id = uuid.uuid4()
        role_id = uuid.uuid4()
        token = auth_service.issue_token(user_id, "Editor", role_id)
        payload = auth_service.verify_token(token)
        assert payload is not None
        assert payload.user_id == user_id
        assert payload.role == "Editor"
        assert payload.role_id == role_id

    def test_round_trip_without_role(self):
        user_id = uuid.uuid4()
        payload = auth_service.verify_token(auth_service.issue_token(user_id))
        assert payload.user_id == user_id
        assert payload.role is None
        assert payload.role_id is None

    def test_tampered_token(self):
        header, _, signature = auth_service.issue_token(uuid.uuid4()).split(".")
        forged_claims = auth_service.issue_token(uuid.uuid4(), "admin").split(".")[1]
        tampered = ".".join([header, forged_claims, signature])
        assert auth_service.verify_token(tampered) is None

    def test_wrong_secret(self):
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            "some-other-secret-that-is-long-enough-123",
            algorithm="HS256",
        )
        assert auth_service.verify_token(token) is None

    def test_expired_token(self):
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "exp": datetime.now(timezone.utc) - timedelta(seconds=5),
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        assert auth_service.verify_token(token) is None

    def test_malformed_subject(self):
        token = jwt.encode(
            {
                "sub": "not-a-uuid",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        assert auth_service.verify_token(token) is None

    def test_missing_token(self):
        assert auth_service.verify_token(None) is None
        assert auth_service.verify_token("") is None


class TestAuthenticate:
    def test_authenticate_normalizes_email(self, db_session, person):
        user, token = auth_service.authenticate(
            db_session, f"  {person.email.upper()} ", PASSWORD
        )
        assert user.id == person.id
        assert auth_service.verify_token(token).user_id == person.id

    def test_wrong_password(self, db_session, person):
        with pytest.raises(HTTPException) as exc:
            auth_service.authenticate(db_session, person.email, "nope-nope")
        assert exc.value.status_code == 401

    def test_unknown_email(self, db_session):
        with pytest.raises(HTTPException) as exc:
            auth_service.authenticate(db_session, "ghost@test.com", PASSWORD)
        assert exc.value.status_code == 401

    def test_register(self, db_session):
        user, token = auth_service.register(
            db_session,
            SignUpRequest(name="New User", email="New@Test.com", password="longpassword"),
        )
        assert user.email == "new@test.com"
        assert auth_service.verify_token(token).user_id == user.id
        assert auth_service.verify_password("longpassword", user.password_hash)


class TestPermissions:
    def test_effective_permissions_union(self, db_session, make_user):
        read = Permission(name="documents.read", category="documents")
        manage = Permission(name="users.manage", category="admin")
        unrelated = Permission(name="roles.manage", category="admin")
        db_session.add_all([read, manage, unrelated])
        db_session.flush()
        role = Role(name="Reviewer")
        db_session.add(role)
        db_session.flush()
        db_session.add(RolePermission(role_id=role.id, permission_id=read.id))
        db_session.commit()

        user = make_user(role=role)
        db_session.add(UserPermission(user_id=user.id, permission_id=manage.id))
        db_session.commit()

        names = [p.name for p in auth_service.effective_permissions(db_session, user)]
        assert names == ["users.manage", "documents.read"]
        assert auth_service.has_permission(db_session, user, "users.manage")
        assert not auth_service.has_permission(db_session, user, "roles.manage")

    def test_admin_has_every_permission(self, db_session, admin_user):
        assert auth_service.is_admin(admin_user)
        assert auth_service.has_permission(db_session, admin_user, "anything.at.all")

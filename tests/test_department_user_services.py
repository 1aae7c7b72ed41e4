import uuid

import pytest
from fastapi import HTTPException

from app.models.department import Department
from app.models.rbac import Role
from app.schemas.department import DepartmentCreate, DepartmentUpdate
from app.schemas.user import UserCreate, UserUpdate
from app.services.auth import verify_password
from app.services.department import Departments, adjust_people_count
from app.services.user import Users


def _user_payload(department=None, **overrides):
    data = {
        "name": "Jane Doe",
        "email": f"jane-{uuid.uuid4().hex[:8]}@example.com",
        "password": "password123",
        "department_id": department.id if department else None,
    }
    data.update(overrides)
    return UserCreate(**data)


def _people_count(db, department):
    db.expire_all()
    return db.get(Department, department.id).people_count


class TestDepartments:
    def test_create_and_duplicate(self, db_session, make_user):
        actor = make_user()
        created = Departments.create(
            db_session, DepartmentCreate(name=" Legal "), actor_id=actor.id
        )
        assert created.name == "Legal"
        assert created.people_count == 0
        assert created.created_by == actor.id

        with pytest.raises(HTTPException) as exc:
            Departments.create(db_session, DepartmentCreate(name="legal"))
        assert exc.value.status_code == 409

    def test_update_and_list(self, db_session, make_department):
        make_department(name="Finance")
        legal = make_department(name="Legal")
        updated = Departments.update(
            db_session, str(legal.id), DepartmentUpdate(description="Contracts")
        )
        assert updated.description == "Contracts"
        assert [d.name for d in Departments.list(db_session)] == ["Finance", "Legal"]

        with pytest.raises(HTTPException) as exc:
            Departments.update(db_session, str(legal.id), DepartmentUpdate(name="FINANCE"))
        assert exc.value.status_code == 409

    def test_delete_empty(self, db_session, make_department):
        department = make_department()
        Departments.delete(db_session, str(department.id))
        with pytest.raises(HTTPException) as exc:
            Departments.get(db_session, str(department.id))
        assert exc.value.status_code == 404

    def test_people_count_never_negative(self, db_session, make_department):
        department = make_department(people_count=1)
        adjust_people_count(db_session, department.id, -1)
        adjust_people_count(db_session, department.id, -1)
        assert _people_count(db_session, department) == 0

    def test_recount_repairs_drift(self, db_session, make_department, make_user):
        department = make_department(people_count=9)
        make_user(department=department)
        make_user(department=department)
        repaired = Departments.recount(db_session, str(department.id))
        assert repaired.people_count == 2


class TestUsers:
    def test_create_increments_people_count(self, db_session, make_department):
        department = make_department()
        user = Users.create(db_session, _user_payload(department))
        assert user.department_id == department.id
        assert verify_password("password123", user.password_hash)
        assert _people_count(db_session, department) == 1

    def test_duplicate_email(self, db_session):
        Users.create(db_session, _user_payload(email="dup@example.com"))
        with pytest.raises(HTTPException) as exc:
            Users.create(db_session, _user_payload(email="DUP@example.com"))
        assert exc.value.status_code == 409

    def test_unknown_references(self, db_session):
        with pytest.raises(HTTPException) as exc:
            Users.create(db_session, _user_payload(department_id=uuid.uuid4()))
        assert exc.value.status_code == 404
        with pytest.raises(HTTPException) as exc:
            Users.create(db_session, _user_payload(role_id=uuid.uuid4()))
        assert exc.value.status_code == 404

    def test_moving_departments_moves_counts(self, db_session, make_department):
        legal, finance = make_department(), make_department()
        user = Users.create(db_session, _user_payload(legal))

        Users.update(db_session, str(user.id), UserUpdate(department_id=finance.id))
        assert _people_count(db_session, legal) == 0
        assert _people_count(db_session, finance) == 1

    def test_update_password(self, db_session):
        user = Users.create(db_session, _user_payload())
        Users.update(db_session, str(user.id), UserUpdate(password="new-password"))
        db_session.expire_all()
        assert verify_password("new-password", Users.get(db_session, str(user.id)).password_hash)

    def test_delete_blocked_for_current_assignee(
        self, db_session, make_user, make_document
    ):
        uploader = make_user()
        assignee = Users.create(db_session, _user_payload())
        make_document(uploader, assigned_to_user=assignee)
        with pytest.raises(HTTPException) as exc:
            Users.delete(db_session, str(assignee.id))
        assert exc.value.status_code == 409
        assert exc.value.detail["code"] == "dependent"

    def test_list_filters_by_department(self, db_session, make_department):
        legal = make_department()
        member = Users.create(db_session, _user_payload(legal, name="Alice"))
        Users.create(db_session, _user_payload(name="Bob"))
        listed = Users.list(db_session, str(legal.id), None, 50, 0)
        assert [u.id for u in listed] == [member.id]


class TestLegalDepartmentScenario:
    def test_delete_member_then_department(self, db_session, make_department):
        legal = make_department(name="Legal")
        members = [Users.create(db_session, _user_payload(legal)) for _ in range(3)]
        assert _people_count(db_session, legal) == 3

        Users.delete(db_session, str(members[0].id))
        assert _people_count(db_session, legal) == 2

        with pytest.raises(HTTPException) as exc:
            Departments.delete(db_session, str(legal.id))
        assert exc.value.status_code == 409
        assert exc.value.detail["code"] == "dependent"


class TestDepartmentReferences:
    def test_assigned_documents_block_delete(
        self, fk_session, make_user, make_department, make_document
    ):
        legal = make_department(name="Legal")
        make_document(make_user(), assigned_to_department=legal)

        with pytest.raises(HTTPException) as exc:
            Departments.delete(fk_session, str(legal.id))
        assert exc.value.status_code == 409
        assert exc.value.detail["code"] == "dependent"
        assert exc.value.detail["details"] == {"documents": 1}

    def test_roles_block_delete(self, db_session, fk_session, make_department):
        legal = make_department()
        db_session.add(Role(name="Paralegal", department_id=legal.id))
        db_session.commit()

        with pytest.raises(HTTPException) as exc:
            Departments.delete(fk_session, str(legal.id))
        assert exc.value.status_code == 409
        assert exc.value.detail["details"] == {"roles": 1}

    def test_foreign_key_violation_reported_as_dependent(
        self, fk_session, make_user, make_department, make_document, monkeypatch
    ):
        legal = make_department()
        make_document(make_user(), assigned_to_department=legal)
        monkeypatch.setattr(Departments, "_references", staticmethod(lambda db, dept_id: {}))

        with pytest.raises(HTTPException) as exc:
            Departments.delete(fk_session, str(legal.id))
        assert exc.value.status_code == 409
        assert exc.value.detail["code"] == "dependent"

        fk_session.expire_all()
        assert fk_session.get(Department, legal.id) is not None

    def test_unreferenced_department_deletes(self, fk_session, make_department):
        legal = make_department()
        Departments.delete(fk_session, str(legal.id))
        assert fk_session.get(Department, legal.id) is None

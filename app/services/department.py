import logging

from fastapi import HTTPException
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.department import Department
from app.models.document import Document, DocumentAssignment
from app.models.rbac import Role
from app.models.user import User
from app.schemas.department import DepartmentCreate, DepartmentUpdate
from app.services.common import coerce_uuid

logger = logging.getLogger(__name__)


def adjust_people_count(db: Session, department_id, delta: int) -> None:
    """Apply ``delta`` to a department's denormalized head count and commit."""
    if department_id is None or delta == 0:
        return
    db.execute(
        update(Department)
        .where(Department.id == coerce_uuid(department_id))
        .values(
            people_count=case(
                (Department.people_count + delta < 0, 0),
                else_=Department.people_count + delta,
            )
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()


class Departments:
    @staticmethod
    def _ensure_unique_name(db: Session, name: str, exclude_id=None) -> None:
        stmt = select(Department.id).where(func.lower(Department.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Department.id != exclude_id)
        if db.scalar(stmt) is not None:
            raise HTTPException(
                status_code=409, detail="Department with this name already exists"
            )

    @staticmethod
    def create(db: Session, payload: DepartmentCreate, actor_id=None) -> Department:
        name = payload.name.strip()
        Departments._ensure_unique_name(db, name)
        department = Department(
            name=name,
            description=payload.description,
            people_count=0,
            created_by=coerce_uuid(actor_id),
            updated_by=coerce_uuid(actor_id),
        )
        db.add(department)
        db.commit()
        db.refresh(department)
        logger.info("Created department %s", department.id)
        return department

    @staticmethod
    def get(db: Session, department_id: str) -> Department:
        department = db.get(Department, coerce_uuid(department_id))
        if not department:
            raise HTTPException(status_code=404, detail="Department not found")
        return department

    @staticmethod
    def list(db: Session) -> list[Department]:
        return list(db.scalars(select(Department).order_by(Department.name.asc())).all())

    @staticmethod
    def update(
        db: Session, department_id: str, payload: DepartmentUpdate, actor_id=None
    ) -> Department:
        department = Departments.get(db, department_id)
        data = payload.model_dump(exclude_unset=True)
        if data.get("name") is not None:
            data["name"] = data["name"].strip()
            Departments._ensure_unique_name(db, data["name"], exclude_id=department.id)
        elif "name" in data:
            data.pop("name")
        for key, value in data.items():
            setattr(department, key, value)
        department.updated_by = coerce_uuid(actor_id)
        db.commit()
        db.refresh(department)
        logger.info("Updated department %s", department.id)
        return department

    @staticmethod
    def _references(db: Session, department_id) -> dict[str, int]:
        def _count(column) -> int:
            stmt = select(func.count()).select_from(column.class_).where(
                column == department_id
            )
            return db.scalar(stmt) or 0

        counts = {
            "users": _count(User.department_id),
            "documents": _count(Document.assigned_to_department),
            "assignments": _count(DocumentAssignment.department_id),
            "roles": _count(Role.department_id),
        }
        return {name: count for name, count in counts.items() if count}

    @staticmethod
    def delete(db: Session, department_id: str) -> None:
        department = Departments.get(db, department_id)
        references = Departments._references(db, department.id)
        if references:
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "dependent",
                    "message": "Department is still referenced and cannot be deleted",
                    "details": references,
                },
            )
        db.delete(department)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "dependent",
                    "message": "Department is referenced by other records",
                },
            )
        logger.info("Deleted department %s", department_id)

    @staticmethod
    def recount(db: Session, department_id: str) -> Department:
        department = Departments.get(db, department_id)
        actual = db.scalar(
            select(func.count(User.id)).where(User.department_id == department.id)
        ) or 0
        if department.people_count != actual:
            logger.warning(
                "Department %s people_count drifted: %s -> %s",
                department.id,
                department.people_count,
                actual,
            )
        department.people_count = actual
        db.commit()
        db.refresh(department)
        return department


departments = Departments()

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_permission, require_user_auth
from app.models.user import User
from app.schemas.department import DepartmentCreate, DepartmentRead, DepartmentUpdate
from app.services.department import departments

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get(
    "",
    response_model=list[DepartmentRead],
    dependencies=[Depends(require_user_auth)],
)
def list_departments(db: Session = Depends(get_db)):
    return departments.list(db)


@router.post("", response_model=DepartmentRead, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    actor: User = Depends(require_permission("departments.manage")),
    db: Session = Depends(get_db),
):
    return departments.create(db, payload, actor_id=actor.id)


@router.get(
    "/{department_id}",
    response_model=DepartmentRead,
    dependencies=[Depends(require_user_auth)],
)
def get_department(department_id: str, db: Session = Depends(get_db)):
    return departments.get(db, department_id)


@router.patch("/{department_id}", response_model=DepartmentRead)
def update_department(
    department_id: str,
    payload: DepartmentUpdate,
    actor: User = Depends(require_permission("departments.manage")),
    db: Session = Depends(get_db),
):
    return departments.update(db, department_id, payload, actor_id=actor.id)


@router.delete(
    "/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("departments.manage"))],
)
def delete_department(department_id: str, db: Session = Depends(get_db)):
    departments.delete(db, department_id)


@router.post(
    "/{department_id}/recount",
    response_model=DepartmentRead,
    dependencies=[Depends(require_permission("departments.manage"))],
)
def recount_department(department_id: str, db: Session = Depends(get_db)):
    return departments.recount(db, department_id)

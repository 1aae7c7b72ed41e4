from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.user import User
from app.schemas.common import ListResponse
from app.schemas.document import (
    AssignRequest,
    AssignmentRead,
    AssignResponse,
    DocumentDetail,
    DocumentRead,
    DocumentUpdate,
    LockResponse,
)
from app.services import assignment as assignment_service
from app.services import document as doc_service
from app.services import file_storage

router = APIRouter(prefix="/documents", tags=["documents"])


# ------------------------------------------------------------------
# Document CRUD
# ------------------------------------------------------------------


@router.post(
    "/upload", response_model=DocumentDetail, status_code=status.HTTP_201_CREATED
)
def upload_document(
    file: UploadFile = File(...),
    title: str = Form(...),
    description: str | None = Form(default=None),
    assigned_to_user: str | None = Form(default=None),
    assigned_to_department: str | None = Form(default=None),
    roles: str | None = Form(default=None),
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    content = file_storage.read_upload(file.file, file.size)
    document = doc_service.documents.upload(
        db,
        user.id,
        doc_service.DocumentUpload(
            title=title,
            description=description,
            assigned_to_user=assigned_to_user,
            assigned_to_department=assigned_to_department,
            roles=roles,
        ),
        content,
        file.filename,
        file.content_type,
    )
    return doc_service.documents.get(db, str(document.id))


@router.get("", response_model=ListResponse[DocumentRead])
def list_documents(
    status_filter: str | None = Query(default=None, alias="status"),
    uploaded_by: str | None = None,
    assigned_to_user: str | None = None,
    assigned_to_department: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.list_response(
        db,
        user,
        status_filter,
        uploaded_by,
        assigned_to_user,
        assigned_to_department,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.get("/{document_id}", response_model=DocumentDetail)
def get_document(
    document_id: str,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.get(db, document_id, user)


@router.patch("/{document_id}", response_model=DocumentRead)
def update_document(
    document_id: str,
    payload: DocumentUpdate,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return doc_service.documents.update(db, document_id, payload, user)


# ------------------------------------------------------------------
# Assignment and locking
# ------------------------------------------------------------------


@router.post("/{document_id}/assign", response_model=AssignResponse)
def assign_document(
    document_id: str,
    payload: AssignRequest,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    assignment, document = assignment_service.assignments.assign(
        db,
        document_id,
        user.id,
        payload.assigned_to,
        give_lock=payload.give_lock,
        notify_assignee=payload.notify,
        roles=payload.roles,
    )
    return {"assignment": assignment, "document": document}


@router.post("/{document_id}/lock", response_model=LockResponse)
def lock_document(
    document_id: str,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    document = assignment_service.assignments.acquire_lock(db, document_id, user.id)
    return {
        "document_id": document.id,
        "locked_by": document.locked_by,
        "locked_at": document.locked_at,
        "expires_at": document.lock_expires_at,
    }


@router.get("/{document_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    document_id: str,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return assignment_service.assignments.list_assignments(db, document_id)

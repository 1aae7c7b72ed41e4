from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_user_auth
from app.models.user import User
from app.schemas.annotation import (
    AnnotationCreate,
    AnnotationRead,
    AnnotationUpdate,
    XfdfRead,
    XfdfUpsert,
)
from app.services import annotation as annotation_service

router = APIRouter(prefix="/annotations", tags=["annotations"])


# ------------------------------------------------------------------
# XFDF blob (declared before /{annotation_id})
# ------------------------------------------------------------------


@router.get("/xfdf", response_model=XfdfRead)
def get_xfdf(document_id: str = Query(...), db: Session = Depends(get_db)):
    row = annotation_service.xfdf_annotations.get(db, document_id)
    if row is None:
        return {"document_id": document_id, "xfdf": None}
    return row


@router.post("/xfdf", response_model=XfdfRead)
def put_xfdf(
    payload: XfdfUpsert,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return annotation_service.xfdf_annotations.put(
        db, str(payload.document_id), user.id, payload.xfdf
    )


# ------------------------------------------------------------------
# Annotations
# ------------------------------------------------------------------


@router.get("", response_model=list[AnnotationRead])
def list_annotations(
    document_id: str = Query(...),
    page_number: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    return annotation_service.annotations.list(db, document_id, page_number)


@router.post("", response_model=AnnotationRead, status_code=status.HTTP_201_CREATED)
def create_annotation(
    payload: AnnotationCreate,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return annotation_service.annotations.create(db, user.id, payload)


@router.get("/{annotation_id}", response_model=AnnotationRead)
def get_annotation(annotation_id: str, db: Session = Depends(get_db)):
    return annotation_service.annotations.get(db, annotation_id)


@router.patch("/{annotation_id}", response_model=AnnotationRead)
def update_annotation(
    annotation_id: str,
    payload: AnnotationUpdate,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return annotation_service.annotations.update(db, annotation_id, user.id, payload)


@router.delete("/{annotation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_annotation(
    annotation_id: str,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    annotation_service.annotations.delete(db, annotation_id, user.id)

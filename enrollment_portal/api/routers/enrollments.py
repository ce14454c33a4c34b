# enrollment_portal/api/routers/enrollments.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import get_current_user, require_permission
from enrollment_portal.api.deps.services import get_object_storage
from enrollment_portal.api.errors import service_errors
from enrollment_portal.core.authz import Permission
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.enrollment import (
    EnrollmentCreate, EnrollmentOut, EnrollmentStatusIn, DocumentOut, DocumentReviewIn
)
from enrollment_portal.services.documents import get_document_service
from enrollment_portal.services.enrollment import get_enrollment_service
from enrollment_portal.services.storage import ObjectStorage

router = APIRouter(tags=["Enrollments"])

manager = require_permission(Permission.MANAGE_ENROLLMENTS)


@router.get("/enrollments", response_model=list[EnrollmentOut])
def list_enrollments(
    student_id: Optional[int] = None,
    enrollment_status: Optional[str] = None,
    ctx=Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db),
):
    rows = get_enrollment_service(db).list_enrollments(student_id=student_id, status=enrollment_status)
    return [EnrollmentOut.from_model(e) for e in rows]


@router.post("/enrollments", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def create_enrollment(payload: EnrollmentCreate, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        svc = get_enrollment_service(db)
        e = svc.create_enrollment(payload.student_id, payload.academic_year, payload.semester, ctx["user"])
        db.commit()
        e = svc.get_enrollment(e.id)
    return EnrollmentOut.from_model(e)


@router.get("/enrollments/{enrollment_id}", response_model=EnrollmentOut)
def get_enrollment(enrollment_id: int, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        return EnrollmentOut.from_model(get_enrollment_service(db).get_enrollment(enrollment_id))


@router.put("/enrollments/{enrollment_id}/status", response_model=EnrollmentOut)
def set_enrollment_status(
    enrollment_id: int,
    payload: EnrollmentStatusIn,
    ctx=Depends(manager),
    db: Session = Depends(get_db),
):
    with service_errors(db):
        svc = get_enrollment_service(db)
        svc.set_enrollment_status(enrollment_id, payload.status, ctx["user"])
        db.commit()
        e = svc.get_enrollment(enrollment_id)
    return EnrollmentOut.from_model(e)


@router.post(
    "/enrollments/{enrollment_id}/documents",
    response_model=DocumentOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    enrollment_id: int,
    document_type: str = Form(...),
    file: UploadFile = File(...),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    content = await file.read()
    with service_errors(db):
        doc = get_document_service(db, storage=storage).upload_document(
            enrollment_id, document_type, file.filename or "", content, file.content_type, ctx["user"]
        )
        db.commit()
    return DocumentOut.model_validate(doc)


@router.get("/enrollments/{enrollment_id}/documents", response_model=list[DocumentOut])
def list_documents(
    enrollment_id: int,
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    with service_errors(db):
        docs = get_document_service(db, storage=storage).list_documents(enrollment_id, ctx["user"])
    return [DocumentOut.model_validate(d) for d in docs]


@router.put("/documents/{document_id}/review", response_model=DocumentOut)
def review_document(
    document_id: int,
    payload: DocumentReviewIn,
    ctx=Depends(require_permission(Permission.REVIEW_DOCUMENTS)),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    with service_errors(db):
        doc = get_document_service(db, storage=storage).review_document(document_id, payload.status, ctx["user"])
        db.commit()
    return DocumentOut.model_validate(doc)

# enrollment_portal/api/routers/registrations.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import require_permission
from enrollment_portal.api.deps.services import get_notifier
from enrollment_portal.api.errors import service_errors
from enrollment_portal.core.authz import Permission
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.registration import (
    RegistrationCreate, RegistrationUpdate, RegistrationOut, RejectIn
)
from enrollment_portal.schemas.student import StudentOut
from enrollment_portal.services.notifications import CredentialsNotifier
from enrollment_portal.services.registrations import get_registration_service

router = APIRouter(prefix="/registrations", tags=["Registrations"])

reviewer = require_permission(Permission.REVIEW_REGISTRATIONS)


@router.post("", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def submit_registration(payload: RegistrationCreate, db: Session = Depends(get_db)):
    """Public intake form; no account needed."""
    with service_errors(db):
        reg = get_registration_service(db).submit_registration(payload.model_dump())
        db.commit()
    return RegistrationOut.model_validate(reg)


@router.get("", response_model=list[RegistrationOut])
def list_registrations(
    status_filter: Optional[str] = Query(None, alias="status"),
    ctx=Depends(reviewer),
    db: Session = Depends(get_db),
):
    rows = get_registration_service(db).list_registrations(status=status_filter)
    return [RegistrationOut.model_validate(r) for r in rows]


@router.get("/{registration_id}", response_model=RegistrationOut)
def get_registration(registration_id: int, ctx=Depends(reviewer), db: Session = Depends(get_db)):
    with service_errors(db):
        reg = get_registration_service(db).get_registration(registration_id)
    return RegistrationOut.model_validate(reg)


@router.patch("/{registration_id}", response_model=RegistrationOut)
def update_registration(
    registration_id: int,
    payload: RegistrationUpdate,
    ctx=Depends(reviewer),
    db: Session = Depends(get_db),
):
    with service_errors(db):
        reg = get_registration_service(db).update_registration(
            registration_id, payload.model_dump(exclude_unset=True), ctx["user"]
        )
        db.commit()
    return RegistrationOut.model_validate(reg)


@router.delete("/{registration_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_registration(registration_id: int, ctx=Depends(reviewer), db: Session = Depends(get_db)):
    with service_errors(db):
        get_registration_service(db).delete_registration(registration_id, ctx["user"])
        db.commit()


@router.post("/{registration_id}/approve", response_model=StudentOut)
def approve_registration(
    registration_id: int,
    ctx=Depends(reviewer),
    db: Session = Depends(get_db),
    notifier: CredentialsNotifier = Depends(get_notifier),
):
    with service_errors(db):
        student = get_registration_service(db, notifier=notifier).approve_registration(registration_id, ctx["user"])
    return StudentOut.model_validate(student)


@router.post("/{registration_id}/reject", response_model=RegistrationOut)
def reject_registration(
    registration_id: int,
    payload: RejectIn | None = None,
    ctx=Depends(reviewer),
    db: Session = Depends(get_db),
):
    with service_errors(db):
        reg = get_registration_service(db).reject_registration(
            registration_id, ctx["user"], remarks=payload.remarks if payload else None
        )
        db.commit()
    return RegistrationOut.model_validate(reg)

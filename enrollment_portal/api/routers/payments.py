# enrollment_portal/api/routers/payments.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import get_current_user
from enrollment_portal.api.errors import service_errors
from enrollment_portal.core.authz import Permission, has_permission
from enrollment_portal.core.db import get_db
from enrollment_portal.core.errors import EnrollmentNotFound
from enrollment_portal.models.enrollment import Enrollment
from enrollment_portal.models.student import Student
from enrollment_portal.schemas.payment import PaymentCreate, PaymentOut, PaymentReceiptOut
from enrollment_portal.services.payments import get_payment_ledger

router = APIRouter(prefix="/payments", tags=["Payments"])


def _check_access(db: Session, user, enrollment_id: int) -> None:
    """Cashiers and admins may touch any enrollment; students only their own."""
    if has_permission(user, Permission.RECORD_PAYMENTS):
        return
    enrollment = db.get(Enrollment, enrollment_id)
    if not enrollment:
        raise EnrollmentNotFound(f"Enrollment {enrollment_id} not found")
    owner = db.get(Student, enrollment.student_id)
    if not owner or owner.user_id != user.id:
        raise HTTPException(status_code=403, detail={"kind": "Forbidden", "message": "Not your enrollment"})


@router.post("", response_model=PaymentReceiptOut, status_code=status.HTTP_201_CREATED)
def create_payment(payload: PaymentCreate, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        _check_access(db, ctx["user"], payload.enrollment_id)
        receipt = get_payment_ledger(db).record_payment(
            payload.enrollment_id,
            payload.amount,
            payload.payment_method,
            reference=payload.reference_number,
        )
        db.commit()

    e = receipt.enrollment
    return PaymentReceiptOut(
        payment=PaymentOut.from_model(receipt.payment),
        tendered=float(receipt.tendered),
        change_due=float(receipt.change_due),
        amount_paid=float(e.amount_paid),
        total_amount=float(e.total_amount),
        balance=float(e.balance),
        payment_status=e.payment_status,
    )


@router.get("", response_model=list[PaymentOut])
def list_payments(
    enrollment_id: int,
    include_pending: Optional[bool] = False,
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors(db):
        _check_access(db, ctx["user"], enrollment_id)
        rows = get_payment_ledger(db).payments_for_enrollment(enrollment_id, include_placeholders=bool(include_pending))
    return [PaymentOut.from_model(p) for p in rows]

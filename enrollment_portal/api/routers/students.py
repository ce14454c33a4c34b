# enrollment_portal/api/routers/students.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import get_current_user, require_permission
from enrollment_portal.api.errors import service_errors
from enrollment_portal.core.authz import Permission, has_permission
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.enrollment import EnrollmentOut
from enrollment_portal.schemas.payment import PaymentOut
from enrollment_portal.schemas.student import StudentOut, StudentDashboardOut, EnrolledCoursesOut
from enrollment_portal.services.enrollment import get_enrollment_service
from enrollment_portal.services.payments import get_payment_ledger
from enrollment_portal.services.students import get_student_service

router = APIRouter(prefix="/students", tags=["Students"])


def _visible_student(student_id: int, ctx, db: Session):
    student = get_student_service(db).get_student(student_id)
    user = ctx["user"]
    if student.user_id != user.id and not has_permission(user, Permission.VIEW_REPORTS):
        raise HTTPException(status_code=403, detail={"kind": "Forbidden", "message": "Not your student record"})
    return student


@router.get("", response_model=list[StudentOut])
def list_students(
    program_id: Optional[int] = None,
    ctx=Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Session = Depends(get_db),
):
    return [StudentOut.model_validate(s) for s in get_student_service(db).list_students(program_id=program_id)]


@router.get("/me", response_model=StudentOut)
def my_record(ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        return StudentOut.model_validate(get_student_service(db).student_for_user(ctx["user"]))


@router.get("/me/dashboard", response_model=StudentDashboardOut)
def my_dashboard(ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        svc = get_student_service(db)
        data = svc.dashboard(svc.student_for_user(ctx["user"]))
    data["outstanding_balance"] = float(data["outstanding_balance"])
    return StudentDashboardOut(**data)


@router.get("/me/courses", response_model=EnrolledCoursesOut)
def my_courses(ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        svc = get_student_service(db)
        return EnrolledCoursesOut(**svc.enrolled_courses(svc.student_for_user(ctx["user"])))


@router.get("/{student_id}", response_model=StudentOut)
def get_student(student_id: int, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        return StudentOut.model_validate(_visible_student(student_id, ctx, db))


@router.get("/{student_id}/enrollments", response_model=list[EnrollmentOut])
def student_enrollments(student_id: int, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        student = _visible_student(student_id, ctx, db)
        rows = get_enrollment_service(db).list_enrollments(student_id=student.id)
    return [EnrollmentOut.from_model(e) for e in rows]


@router.get("/{student_id}/payments", response_model=list[PaymentOut])
def student_payments(student_id: int, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        student = _visible_student(student_id, ctx, db)
        rows = get_payment_ledger(db).payments_for_student(student.id)
    return [PaymentOut.from_model(p) for p in rows]

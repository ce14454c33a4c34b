# enrollment_portal/services/enrollment.py
"""
Enrollment writer.

Creates the per-semester enrollment of a student with its computed total,
links the billed courses, and handles admin status changes. Approving an
enrollment re-prices it from the student's current program / year level and
opens a fresh billing cycle: earlier payments stay in the ledger but no longer
count toward ``amount_paid``.
"""

import logging
from typing import Optional, List

from sqlalchemy import select, and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from enrollment_portal.core.authz import Permission, authorize
from enrollment_portal.core.errors import Conflict, EnrollmentNotFound, NotFound, ValidationFailed
from enrollment_portal.models.base import utcnow
from enrollment_portal.models.enrollment import (
    Enrollment, EnrollmentCourse, EnrollmentStatus, PaymentStatus
)
from enrollment_portal.models.student import Student
from enrollment_portal.models.user import User
from enrollment_portal.services.fees import FeeCalculator, CourseLine
from enrollment_portal.services.locking import lock_row
from enrollment_portal.services.payments import PaymentLedger
from enrollment_portal.services.periods import (
    AcademicPeriod, PeriodPolicy, current_academic_period, is_valid_academic_year
)

logger = logging.getLogger(__name__)

ENROLLMENT_STATUSES = [s.value for s in EnrollmentStatus]


class EnrollmentService:
    """Creates and updates enrollments and their billing totals"""

    def __init__(
        self,
        db: Session,
        fees: Optional[FeeCalculator] = None,
        ledger: Optional[PaymentLedger] = None,
        period_policy: PeriodPolicy = current_academic_period,
    ):
        self.db = db
        self.fees = fees or FeeCalculator(db)
        self.ledger = ledger or PaymentLedger(db)
        self.period_policy = period_policy

    def find_enrollment(self, student_id: int, academic_year: str, semester: int) -> Optional[Enrollment]:
        return self.db.execute(
            select(Enrollment).where(
                and_(
                    Enrollment.student_id == student_id,
                    Enrollment.academic_year == academic_year,
                    Enrollment.semester == semester,
                )
            )
        ).scalar_one_or_none()

    def create_initial_enrollment(
        self,
        student_id: int,
        program_id: int,
        year_level: int,
        period: Optional[AcademicPeriod] = None,
    ) -> Enrollment:
        """
        Draft enrollment for the current period, priced from the curriculum.
        Idempotent: an existing enrollment for the period is returned untouched.
        """
        period = period or self.period_policy(None)

        existing = self.find_enrollment(student_id, period.academic_year, period.semester)
        if existing:
            logger.info(f"Enrollment already exists for student {student_id} in {period}")
            return existing

        breakdown = self.fees.calculate_fees(program_id, year_level, period.semester)

        enrollment = Enrollment(
            student_id=student_id,
            academic_year=period.academic_year,
            semester=period.semester,
            enrollment_status=EnrollmentStatus.DRAFT.value,
            documents_submitted=False,
            payment_status=PaymentStatus.UNPAID.value,
            total_amount=breakdown.total_amount,
            amount_paid=0,
            billing_cycle=1,
        )
        self.db.add(enrollment)
        self.db.flush()

        logger.info(
            f"Created enrollment {enrollment.id} for student {student_id}: "
            f"{breakdown.total_amount} ({len(breakdown.courses)} courses)"
        )

        if breakdown.courses:
            self.link_courses(enrollment, breakdown.courses)

        return enrollment

    def link_courses(self, enrollment: Enrollment, courses: List[CourseLine]) -> int:
        """
        Best-effort: failures are logged and never reach the caller. Everything
        runs in one SAVEPOINT, so a failed statement rolls back only the links.
        """
        self.db.flush()
        try:
            with self.db.begin_nested():
                already = self.db.execute(
                    select(func.count(EnrollmentCourse.id)).where(EnrollmentCourse.enrollment_id == enrollment.id)
                ).scalar_one()
                if already:
                    return 0

                for course in courses:
                    self.db.add(EnrollmentCourse(
                        enrollment_id=enrollment.id,
                        course_id=course.course_id,
                        status="Enrolled",
                    ))
            return len(courses)
        except SQLAlchemyError as e:
            logger.error(f"Could not link courses to enrollment {enrollment.id}: {e}")
            return 0

    def create_enrollment(self, student_id: int, academic_year: str, semester: int, actor: User) -> Enrollment:
        """Manual creation by an administrator for an explicit period."""
        authorize(actor, Permission.MANAGE_ENROLLMENTS)

        academic_year = (academic_year or "").strip()
        if not is_valid_academic_year(academic_year):
            raise ValidationFailed(f"Invalid academic year '{academic_year}'. Expected consecutive years like 2025-2026")
        if semester not in (1, 2):
            raise ValidationFailed("Semester must be 1 or 2")

        student = self.db.get(Student, student_id)
        if not student:
            raise NotFound(f"Student {student_id} not found")

        if self.find_enrollment(student_id, academic_year, semester):
            raise Conflict(f"Student {student_id} is already enrolled for {academic_year} semester {semester}")

        return self.create_initial_enrollment(
            student.id, student.program_id, student.year_level,
            period=AcademicPeriod(academic_year, semester),
        )

    def set_enrollment_status(self, enrollment_id: int, status: str, actor: User) -> Enrollment:
        authorize(actor, Permission.MANAGE_ENROLLMENTS)

        if status not in ENROLLMENT_STATUSES:
            raise ValidationFailed(f"Invalid enrollment status '{status}'. Expected one of {ENROLLMENT_STATUSES}")

        enrollment = lock_row(self.db, Enrollment, enrollment_id)
        if not enrollment:
            raise EnrollmentNotFound(f"Enrollment {enrollment_id} not found")

        enrollment.enrollment_status = status
        if status != EnrollmentStatus.APPROVED.value:
            self.db.flush()
            return enrollment

        student = self.db.get(Student, enrollment.student_id)
        if not student:
            raise NotFound(f"Student {enrollment.student_id} not found")

        breakdown = self.fees.calculate_fees(student.program_id, student.year_level, enrollment.semester)

        enrollment.total_amount = breakdown.total_amount
        enrollment.billing_cycle = (enrollment.billing_cycle or 1) + 1
        enrollment.approved_by = actor.id
        enrollment.approved_at = utcnow()
        self.ledger.refresh_totals(enrollment)
        self.ledger.ensure_placeholder(enrollment)

        logger.info(
            f"Enrollment {enrollment.id} approved by user {actor.id}: total {enrollment.total_amount}, "
            f"billing cycle {enrollment.billing_cycle}"
        )
        return enrollment

    def get_enrollment(self, enrollment_id: int) -> Enrollment:
        enrollment = self.db.execute(
            select(Enrollment)
            .options(selectinload(Enrollment.documents))
            .where(Enrollment.id == enrollment_id)
        ).scalar_one_or_none()
        if not enrollment:
            raise EnrollmentNotFound(f"Enrollment {enrollment_id} not found")
        return enrollment

    def list_enrollments(self, student_id: Optional[int] = None, status: Optional[str] = None) -> List[Enrollment]:
        query = select(Enrollment).options(selectinload(Enrollment.documents))
        if student_id is not None:
            query = query.where(Enrollment.student_id == student_id)
        if status:
            query = query.where(Enrollment.enrollment_status == status)
        return list(self.db.execute(query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc())).scalars().all())


def get_enrollment_service(db: Session, **kwargs) -> EnrollmentService:
    return EnrollmentService(db, **kwargs)

# tests/test_enrollment.py
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from enrollment_portal.core.errors import (
    Conflict, EnrollmentNotFound, Forbidden, NotFound, ValidationFailed
)
from enrollment_portal.models import (
    Course, Enrollment, EnrollmentCourse, EnrollmentStatus, Payment, PaymentStatus, PLACEHOLDER_METHOD, UserRole
)
from enrollment_portal.services.payments import PaymentLedger
from enrollment_portal.services.periods import AcademicPeriod

from tests.conftest import FIXED_PERIOD, fail_queries_on, make_student, make_user


@pytest.fixture
def student(db, curriculum):
    program, _ = curriculum
    return make_student(db, program.id)


def placeholders(db, enrollment_id):
    return db.execute(
        select(Payment).where(Payment.enrollment_id == enrollment_id, Payment.payment_method == PLACEHOLDER_METHOD)
    ).scalars().all()


def test_initial_enrollment_is_draft_and_priced(db, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)

    assert e.academic_year == FIXED_PERIOD.academic_year
    assert e.semester == FIXED_PERIOD.semester
    assert e.enrollment_status == EnrollmentStatus.DRAFT.value
    assert e.payment_status == PaymentStatus.UNPAID.value
    assert Decimal(e.total_amount) == Decimal("9500.00")
    assert Decimal(e.amount_paid) == Decimal("0")


def test_initial_enrollment_links_billed_courses(db, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)

    linked = db.execute(
        select(Course.course_code)
        .join(EnrollmentCourse, EnrollmentCourse.course_id == Course.id)
        .where(EnrollmentCourse.enrollment_id == e.id)
        .order_by(Course.course_code)
    ).scalars().all()
    assert linked == ["CS101", "MATH101"]


def test_initial_enrollment_is_idempotent(db, student, enrollment_service):
    first = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    second = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)

    assert first.id == second.id
    links = db.execute(
        select(func.count(EnrollmentCourse.id)).where(EnrollmentCourse.enrollment_id == first.id)
    ).scalar_one()
    assert links == 2


def test_link_courses_skips_when_already_linked(db, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    breakdown = enrollment_service.fees.calculate_fees(student.program_id, 1, 1)

    assert enrollment_service.link_courses(e, breakdown.courses) == 0


def test_curriculum_without_courses_creates_bare_enrollment(db, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(
        student.id, student.program_id, 1, period=AcademicPeriod("2025-2026", 2)
    )
    assert Decimal(e.total_amount) == Decimal("2500.00")
    assert db.execute(
        select(func.count(EnrollmentCourse.id)).where(EnrollmentCourse.enrollment_id == e.id)
    ).scalar_one() == 0


def test_approval_reprices_resets_paid_and_adds_one_placeholder(db, admin, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    PaymentLedger(db).record_payment(e.id, 4000, "Cash")
    assert e.payment_status == PaymentStatus.PARTIAL.value

    approved = enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.APPROVED.value, admin)

    assert approved.enrollment_status == EnrollmentStatus.APPROVED.value
    assert Decimal(approved.total_amount) == Decimal("9500.00")
    assert approved.amount_paid == Decimal("0.00")
    assert approved.payment_status == PaymentStatus.UNPAID.value
    assert approved.approved_by == admin.id
    assert approved.approved_at is not None

    rows = placeholders(db, e.id)
    assert len(rows) == 1
    assert rows[0].amount == Decimal("9500.00")

    # The earlier payment stays in the ledger
    assert len(PaymentLedger(db).payments_for_enrollment(e.id)) == 1


def test_reapproval_keeps_single_placeholder(db, admin, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.APPROVED.value, admin)
    PaymentLedger(db).record_payment(e.id, 9500, "Cash")

    again = enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.APPROVED.value, admin)

    assert len(placeholders(db, e.id)) == 1
    assert again.amount_paid == Decimal("0.00")
    assert again.payment_status == PaymentStatus.UNPAID.value


def test_approval_prices_from_current_year_level(db, admin, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    student.year_level = 2  # no curriculum for year 2
    db.flush()

    approved = enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.APPROVED.value, admin)
    assert Decimal(approved.total_amount) == Decimal("2500.00")


def test_non_approved_status_leaves_billing_alone(db, admin, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    PaymentLedger(db).record_payment(e.id, 1000, "Cash")

    updated = enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.FOR_REVIEW.value, admin)

    assert updated.enrollment_status == EnrollmentStatus.FOR_REVIEW.value
    assert updated.amount_paid == Decimal("1000.00")
    assert updated.payment_status == PaymentStatus.PARTIAL.value
    assert placeholders(db, e.id) == []


def test_status_validation_and_lookup(db, admin, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)

    with pytest.raises(ValidationFailed):
        enrollment_service.set_enrollment_status(e.id, "Enrolled", admin)
    with pytest.raises(EnrollmentNotFound):
        enrollment_service.set_enrollment_status(9999, EnrollmentStatus.APPROVED.value, admin)


def test_only_staff_can_change_status(db, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    cashier = make_user(db, "till@example.com", [UserRole.CASHIER.value])

    with pytest.raises(Forbidden):
        enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.APPROVED.value, cashier)


def test_manual_enrollment_for_explicit_period(db, admin, student, enrollment_service):
    e = enrollment_service.create_enrollment(student.id, "2026-2027", 1, admin)
    assert e.academic_year == "2026-2027"
    assert Decimal(e.total_amount) == Decimal("9500.00")

    with pytest.raises(Conflict):
        enrollment_service.create_enrollment(student.id, "2026-2027", 1, admin)
    with pytest.raises(ValidationFailed):
        enrollment_service.create_enrollment(student.id, "2026-2027", 3, admin)
    with pytest.raises(NotFound):
        enrollment_service.create_enrollment(12345, "2026-2027", 1, admin)


def test_status_change_after_payment_keeps_stored_totals(db, admin, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    PaymentLedger(db).record_payment(e.id, 1000, "Cash")
    enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.FOR_REVIEW.value, admin)
    db.commit()

    db.expire_all()
    stored = db.get(Enrollment, e.id)
    ledger_sum = db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.enrollment_id == e.id, Payment.payment_method != PLACEHOLDER_METHOD
        )
    ).scalar_one()
    assert stored.amount_paid == Decimal(ledger_sum) == Decimal("1000.00")
    assert stored.payment_status == PaymentStatus.PARTIAL.value


def test_failed_course_link_is_rolled_back_alone(db, student, enrollment_service):
    e = enrollment_service.create_initial_enrollment(
        student.id, student.program_id, 1, period=AcademicPeriod("2025-2026", 2)
    )
    lines = enrollment_service.fees.calculate_fees(student.program_id, 1, 1).courses

    # The same course twice violates the enrollment/course unique index
    assert enrollment_service.link_courses(e, lines + lines[:1]) == 0
    db.commit()

    assert db.get(Enrollment, e.id) is not None
    assert db.execute(
        select(func.count(EnrollmentCourse.id)).where(EnrollmentCourse.enrollment_id == e.id)
    ).scalar_one() == 0


def test_unreachable_course_links_do_not_block_enrollment(db, student, enrollment_service, monkeypatch):
    fail_queries_on(monkeypatch, db, "enrollment_courses")

    e = enrollment_service.create_initial_enrollment(student.id, student.program_id, 1)
    assert Decimal(e.total_amount) == Decimal("9500.00")

    monkeypatch.undo()
    db.commit()
    assert db.get(Enrollment, e.id).enrollment_status == EnrollmentStatus.DRAFT.value


@pytest.mark.parametrize("academic_year", [
    "banana-split-forever", "2025 - 2026", "2025-2027", "2026-2025", "25-26", "",
])
def test_manual_enrollment_rejects_malformed_academic_year(db, admin, student, enrollment_service, academic_year):
    with pytest.raises(ValidationFailed):
        enrollment_service.create_enrollment(student.id, academic_year, 1, admin)
    assert db.execute(select(func.count(Enrollment.id))).scalar_one() == 0

# tests/test_students.py
from decimal import Decimal

import pytest

from enrollment_portal.core.errors import NotFound
from enrollment_portal.models import EnrollmentDocument, EnrollmentStatus, UserRole
from enrollment_portal.services.payments import PaymentLedger
from enrollment_portal.services.students import StudentService, admin_analytics

from tests.conftest import make_registration, make_student, make_user


def test_dashboard_summary(db, curriculum, enrollment_service):
    program, _ = curriculum
    user = make_user(db, "maria@example.com", [UserRole.STUDENT.value])
    student = make_student(db, program.id, user_id=user.id)
    e = enrollment_service.create_initial_enrollment(student.id, program.id, 1)
    PaymentLedger(db).record_payment(e.id, 2000, "Cash")
    db.add(EnrollmentDocument(enrollment_id=e.id, document_type="Form 138",
                              file_url="https://files.example.test/a.pdf", storage_path="a.pdf"))
    db.flush()

    svc = StudentService(db)
    summary = svc.dashboard(svc.student_for_user(user))

    assert summary["current_program"] == "BSCS Program"
    assert summary["year_level"] == 1
    assert summary["registered_enrollments"] == 1
    assert summary["completed_units"] == 7
    assert summary["pending_documents"] == 1
    assert summary["upcoming_payments"] == 1
    assert summary["outstanding_balance"] == Decimal("7500.00")


def test_dashboard_for_new_student(db, curriculum):
    program, _ = curriculum
    student = make_student(db, program.id)

    summary = StudentService(db).dashboard(student)
    assert summary["registered_enrollments"] == 0
    assert summary["pending_documents"] == 0
    assert summary["upcoming_payments"] == 0


def test_lookup_errors(db, curriculum):
    svc = StudentService(db)
    with pytest.raises(NotFound):
        svc.get_student(404)
    with pytest.raises(NotFound):
        svc.student_for_user(make_user(db, "nobody@example.com", [UserRole.STUDENT.value]))


def test_admin_analytics(db, admin, curriculum, enrollment_service):
    program, _ = curriculum
    make_registration(db, program.id, email="p1@example.com")
    make_registration(db, program.id, email="p2@example.com")
    student = make_student(db, program.id)
    enrollment_service.create_initial_enrollment(student.id, program.id, 1)

    stats = admin_analytics(db)
    assert stats == {
        "total_students": 1,
        "pending_registrations": 2,
        "approved_registrations": 0,
        "programs_count": 1,
        "courses_count": 2,
        "upcoming_enrollments": 1,
    }


def test_enrolled_courses_only_after_approval(db, admin, curriculum, enrollment_service):
    program, _ = curriculum
    student = make_student(db, program.id)
    svc = StudentService(db)

    assert svc.enrolled_courses(student) == {
        "enrolled": False, "enrollment_id": None, "academic_year": None, "semester": None, "courses": [],
    }

    e = enrollment_service.create_initial_enrollment(student.id, program.id, 1)
    draft = svc.enrolled_courses(student)
    assert draft["enrolled"] is False
    assert draft["enrollment_id"] == e.id

    enrollment_service.set_enrollment_status(e.id, EnrollmentStatus.APPROVED.value, admin)
    view = svc.enrolled_courses(student)
    assert view["enrolled"] is True
    assert (view["academic_year"], view["semester"]) == ("2025-2026", 1)
    assert [(c["course_code"], c["units"], c["status"]) for c in view["courses"]] == [
        ("CS101", 3, "Enrolled"), ("MATH101", 4, "Enrolled"),
    ]

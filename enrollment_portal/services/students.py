# enrollment_portal/services/students.py
from decimal import Decimal
from typing import Optional, List, Dict, Any

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from enrollment_portal.core.errors import NotFound
from enrollment_portal.models.academic import Program, Year, Course
from enrollment_portal.models.enrollment import (
    Enrollment, EnrollmentCourse, EnrollmentDocument, DocumentStatus, EnrollmentStatus
)
from enrollment_portal.models.registration import Registration, RegistrationStatus
from enrollment_portal.models.student import Student
from enrollment_portal.models.user import User


class StudentService:
    def __init__(self, db: Session):
        self.db = db

    def list_students(self, program_id: Optional[int] = None, status: Optional[str] = None) -> List[Student]:
        query = select(Student)
        if program_id is not None:
            query = query.where(Student.program_id == program_id)
        if status:
            query = query.where(Student.status == status)
        return list(self.db.execute(query.order_by(Student.last_name, Student.first_name)).scalars().all())

    def get_student(self, student_id: int) -> Student:
        student = self.db.get(Student, student_id)
        if not student:
            raise NotFound(f"Student {student_id} not found")
        return student

    def student_for_user(self, user: User) -> Student:
        student = self.db.execute(
            select(Student).where(Student.user_id == user.id)
        ).scalar_one_or_none()
        if not student:
            raise NotFound("No student record is linked to this account")
        return student

    def dashboard(self, student: Student) -> Dict[str, Any]:
        program = self.db.get(Program, student.program_id)
        enrollments = self.db.execute(
            select(Enrollment).where(Enrollment.student_id == student.id)
        ).scalars().all()

        pending_documents = 0
        if enrollments:
            pending_documents = self.db.execute(
                select(func.count(EnrollmentDocument.id)).where(
                    EnrollmentDocument.enrollment_id.in_([e.id for e in enrollments]),
                    EnrollmentDocument.status == DocumentStatus.PENDING.value,
                )
            ).scalar_one()

        # Units of every course in the student's program curriculum
        completed_units = self.db.execute(
            select(func.coalesce(func.sum(Course.units), 0))
            .join(Year, Year.id == Course.year_id)
            .where(Year.program_id == student.program_id)
        ).scalar_one()

        outstanding = [e for e in enrollments if Decimal(e.total_amount or 0) > Decimal(e.amount_paid or 0)]

        return {
            "student_id": student.id,
            "student_number": student.student_number,
            "full_name": student.full_name,
            "current_program": program.program_name if program else None,
            "year_level": student.year_level,
            "registered_enrollments": len(enrollments),
            "completed_units": int(completed_units or 0),
            "pending_documents": int(pending_documents),
            "upcoming_payments": len(outstanding),
            "outstanding_balance": sum((e.balance for e in outstanding), Decimal("0.00")),
        }

    def enrolled_courses(self, student: Student) -> Dict[str, Any]:
        """Courses linked to the student's latest enrollment, once it is approved."""
        latest = self.db.execute(
            select(Enrollment)
            .where(Enrollment.student_id == student.id)
            .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
            .limit(1)
        ).scalar_one_or_none()

        if not latest or latest.enrollment_status != EnrollmentStatus.APPROVED.value:
            return {"enrolled": False, "enrollment_id": latest.id if latest else None,
                    "academic_year": None, "semester": None, "courses": []}

        rows = self.db.execute(
            select(Course, EnrollmentCourse.status)
            .join(EnrollmentCourse, EnrollmentCourse.course_id == Course.id)
            .where(EnrollmentCourse.enrollment_id == latest.id)
            .order_by(Course.course_code)
        ).all()

        return {
            "enrolled": True,
            "enrollment_id": latest.id,
            "academic_year": latest.academic_year,
            "semester": latest.semester,
            "courses": [
                {
                    "course_id": course.id,
                    "course_code": course.course_code,
                    "course_name": course.course_name,
                    "units": course.units,
                    "status": status,
                }
                for course, status in rows
            ],
        }


def admin_analytics(db: Session) -> Dict[str, int]:
    def count(column, *where) -> int:
        query = select(func.count(column))
        for clause in where:
            query = query.where(clause)
        return int(db.execute(query).scalar_one())

    return {
        "total_students": count(Student.id),
        "pending_registrations": count(Registration.id, Registration.status == RegistrationStatus.PENDING.value),
        "approved_registrations": count(Registration.id, Registration.status == RegistrationStatus.APPROVED.value),
        "programs_count": count(Program.id),
        "courses_count": count(Course.id),
        "upcoming_enrollments": count(Enrollment.id, Enrollment.enrollment_status == EnrollmentStatus.DRAFT.value),
    }


def get_student_service(db: Session) -> StudentService:
    return StudentService(db)

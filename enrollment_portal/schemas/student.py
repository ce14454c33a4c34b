# enrollment_portal/schemas/student.py
from pydantic import BaseModel, ConfigDict


class StudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_number: str
    registration_id: int | None
    user_id: int | None
    first_name: str
    middle_name: str | None
    last_name: str
    email: str
    contact_number: str | None
    address: str | None
    program_id: int
    year_level: int
    is_returning_student: bool
    status: str


class StudentDashboardOut(BaseModel):
    student_id: int
    student_number: str
    full_name: str
    current_program: str | None
    year_level: int
    registered_enrollments: int
    completed_units: int
    pending_documents: int
    upcoming_payments: int
    outstanding_balance: float


class AdminAnalyticsOut(BaseModel):
    total_students: int
    pending_registrations: int
    approved_registrations: int
    programs_count: int
    courses_count: int
    upcoming_enrollments: int


class EnrolledCourseOut(BaseModel):
    course_id: int
    course_code: str
    course_name: str
    units: int
    status: str


class EnrolledCoursesOut(BaseModel):
    enrolled: bool
    enrollment_id: int | None
    academic_year: str | None
    semester: int | None
    courses: list[EnrolledCourseOut]

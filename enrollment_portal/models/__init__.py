from enrollment_portal.models.base import Base
from enrollment_portal.models.user import User, UserRole
from enrollment_portal.models.academic import Program, Year, Course, CourseStatus
from enrollment_portal.models.registration import Registration, RegistrationStatus
from enrollment_portal.models.student import Student
from enrollment_portal.models.enrollment import (
    Enrollment, EnrollmentCourse, EnrollmentDocument,
    EnrollmentStatus, PaymentStatus, DocumentStatus,
)
from enrollment_portal.models.payment import Payment, PLACEHOLDER_METHOD
from enrollment_portal.models.notification import Notification

__all__ = [
    "Base", "User", "UserRole", "Program", "Year", "Course", "CourseStatus",
    "Registration", "RegistrationStatus", "Student", "Enrollment", "EnrollmentCourse",
    "EnrollmentDocument", "EnrollmentStatus", "PaymentStatus", "DocumentStatus",
    "Payment", "PLACEHOLDER_METHOD", "Notification",
]

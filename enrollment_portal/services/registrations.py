# enrollment_portal/services/registrations.py
"""
Registration intake and the approval workflow.

Approving a Pending registration, in one transaction:
1. lock the registration and check it is still Pending
2. issue a temporary password and create (or reset) the login identity
3. create the student record and its initial Draft enrollment, unless a
   student with that e-mail already exists
4. mark the registration Approved with reviewer and timestamp
The transaction is committed before the credentials e-mail goes out; a failed
e-mail is logged and recorded but never undoes the approval.
"""

import logging
import secrets
from typing import Optional, List, Dict, Any

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from enrollment_portal.core.authz import Permission, authorize
from enrollment_portal.core.errors import AlreadyProcessed, Conflict, NotFound, ValidationFailed
from enrollment_portal.core.security import generate_temp_password
from enrollment_portal.models.academic import Program
from enrollment_portal.models.base import utcnow
from enrollment_portal.models.registration import Registration, RegistrationStatus
from enrollment_portal.models.student import Student
from enrollment_portal.models.user import User
from enrollment_portal.services.enrollment import EnrollmentService
from enrollment_portal.services.identity import (
    IdentityProvider, IdentityProvisioner, LocalIdentityProvider, normalize_email
)
from enrollment_portal.services.locking import lock_row
from enrollment_portal.services.notifications import CredentialsNotifier, EmailService, NotificationLog

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "first_name", "middle_name", "last_name", "email", "contact_number",
    "address", "program_id", "year_level", "is_returning_student", "remarks",
)


class RegistrationService:
    def __init__(
        self,
        db: Session,
        identity: Optional[IdentityProvider] = None,
        notifier: Optional[CredentialsNotifier] = None,
        enrollments: Optional[EnrollmentService] = None,
    ):
        self.db = db
        self.identity = identity or LocalIdentityProvider(db)
        self.notifier = notifier or EmailService()
        self.enrollments = enrollments or EnrollmentService(db)
        self.notifications = NotificationLog(db)

    # ------------------------------------------------------------------ intake

    def _check_program(self, program_id: int) -> Program:
        program = self.db.get(Program, program_id)
        if not program:
            raise ValidationFailed(f"Program {program_id} does not exist")
        return program

    @staticmethod
    def _check_year_level(year_level) -> None:
        if int(year_level or 0) < 1:
            raise ValidationFailed("Year level must be at least 1")

    def _pending_for_email(self, email: str, exclude_id: Optional[int] = None) -> Optional[Registration]:
        query = select(Registration).where(
            and_(
                Registration.email == email,
                Registration.status == RegistrationStatus.PENDING.value,
            )
        )
        if exclude_id is not None:
            query = query.where(Registration.id != exclude_id)
        return self.db.execute(query).scalars().first()

    def submit_registration(self, data: Dict[str, Any]) -> Registration:
        email = normalize_email(data.get("email"))
        if not email:
            raise ValidationFailed("Email is required")
        self._check_year_level(data.get("year_level"))
        self._check_program(data["program_id"])

        if self._pending_for_email(email):
            raise Conflict(f"A pending registration already exists for {email}")

        reg = Registration(**{k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        reg.email = email
        reg.status = RegistrationStatus.PENDING.value
        self.db.add(reg)
        self.db.flush()
        logger.info(f"Registration {reg.id} submitted for {email}")
        return reg

    def get_registration(self, registration_id: int) -> Registration:
        reg = self.db.get(Registration, registration_id)
        if not reg:
            raise NotFound(f"Registration {registration_id} not found")
        return reg

    def list_registrations(self, status: Optional[str] = None) -> List[Registration]:
        query = select(Registration)
        if status:
            query = query.where(Registration.status == status)
        return list(self.db.execute(query.order_by(Registration.created_at.desc(), Registration.id.desc())).scalars().all())

    def update_registration(self, registration_id: int, changes: Dict[str, Any], actor: User) -> Registration:
        authorize(actor, Permission.REVIEW_REGISTRATIONS)
        reg = lock_row(self.db, Registration, registration_id)
        if not reg:
            raise NotFound(f"Registration {registration_id} not found")
        if not reg.is_pending:
            raise AlreadyProcessed(f"Registration {registration_id} is already {reg.status}")

        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            if self._pending_for_email(changes["email"], exclude_id=reg.id):
                raise Conflict(f"A pending registration already exists for {changes['email']}")
        if "program_id" in changes:
            self._check_program(changes["program_id"])
        if "year_level" in changes:
            self._check_year_level(changes["year_level"])

        for key, value in changes.items():
            setattr(reg, key, value)
        self.db.flush()
        return reg

    def delete_registration(self, registration_id: int, actor: User) -> None:
        authorize(actor, Permission.REVIEW_REGISTRATIONS)
        reg = lock_row(self.db, Registration, registration_id)
        if not reg:
            raise NotFound(f"Registration {registration_id} not found")
        if not reg.is_pending:
            raise AlreadyProcessed(f"Registration {registration_id} is already {reg.status}")
        self.db.delete(reg)
        self.db.flush()

    # ---------------------------------------------------------------- workflow

    def _new_student_number(self) -> str:
        while True:
            number = f"STU-{utcnow():%Y}-{secrets.token_hex(3).upper()}"
            taken = self.db.execute(
                select(Student.id).where(Student.student_number == number)
            ).first()
            if not taken:
                return number

    def _find_student_by_email(self, email: str) -> Optional[Student]:
        return self.db.execute(
            select(Student).where(Student.email == normalize_email(email))
        ).scalar_one_or_none()

    def approve_registration(self, registration_id: int, actor: User) -> Student:
        authorize(actor, Permission.REVIEW_REGISTRATIONS)

        try:
            reg = lock_row(self.db, Registration, registration_id)
            if not reg:
                raise NotFound(f"Registration {registration_id} not found")
            if not reg.is_pending:
                raise AlreadyProcessed(f"Registration {registration_id} is already {reg.status}")

            temp_password = generate_temp_password()
            user_id = IdentityProvisioner(self.identity).ensure_identity(
                reg.email, temp_password, full_name=reg.full_name
            )

            student = self._find_student_by_email(reg.email)
            if not student:
                student = Student(
                    student_number=self._new_student_number(),
                    registration_id=reg.id,
                    user_id=user_id,
                    first_name=reg.first_name,
                    middle_name=reg.middle_name,
                    last_name=reg.last_name,
                    email=normalize_email(reg.email),
                    contact_number=reg.contact_number,
                    address=reg.address,
                    program_id=reg.program_id,
                    year_level=reg.year_level,
                    is_returning_student=bool(reg.is_returning_student),
                    status="Active",
                )
                self.db.add(student)
                self.db.flush()
                logger.info(f"Created student {student.id} ({student.student_number}) from registration {reg.id}")

                self.enrollments.create_initial_enrollment(student.id, reg.program_id, reg.year_level)
            else:
                logger.info(f"Student {student.id} already exists for {reg.email}; skipping creation")
                if student.user_id is None:
                    student.user_id = user_id

            reg.status = RegistrationStatus.APPROVED.value
            reg.reviewed_by = actor.id
            reg.reviewed_at = utcnow()
            self.db.flush()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self._send_credentials(reg.email, temp_password, reg.full_name)
        return student

    def _send_credentials(self, email: str, temp_password: str, display_name: str) -> None:
        """Best-effort: nothing here may fail the approval."""
        try:
            result = self.notifier.send_credentials(email, temp_password, display_name)
        except Exception as e:  # notifier implementations are external code
            logger.error(f"Credentials e-mail to {email} raised: {e}")
            result = {"success": False, "error": str(e)}

        if not result.get("success"):
            logger.warning(f"Credentials e-mail to {email} not delivered: {result.get('error')}")

        try:
            self.notifications.record(email, self.notifier.credentials_subject(), result)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not record notification for {email}: {e}")

    def reject_registration(self, registration_id: int, actor: User, remarks: Optional[str] = None) -> Registration:
        authorize(actor, Permission.REVIEW_REGISTRATIONS)

        reg = lock_row(self.db, Registration, registration_id)
        if not reg:
            raise NotFound(f"Registration {registration_id} not found")
        if not reg.is_pending:
            raise AlreadyProcessed(f"Registration {registration_id} is already {reg.status}")

        reg.status = RegistrationStatus.REJECTED.value
        reg.reviewed_by = actor.id
        reg.reviewed_at = utcnow()
        if remarks:
            reg.remarks = remarks
        self.db.flush()
        logger.info(f"Registration {reg.id} rejected by user {actor.id}")
        return reg


def get_registration_service(db: Session, **kwargs) -> RegistrationService:
    return RegistrationService(db, **kwargs)

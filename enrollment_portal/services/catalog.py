# enrollment_portal/services/catalog.py
"""Programs, year levels and courses."""

import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from enrollment_portal.core.authz import Permission, authorize
from enrollment_portal.core.errors import Conflict, NotFound, ValidationFailed
from enrollment_portal.models.academic import Program, Year, Course, CourseStatus
from enrollment_portal.models.registration import Registration
from enrollment_portal.models.student import Student
from enrollment_portal.models.user import User

logger = logging.getLogger(__name__)

PROGRAM_FIELDS = ("program_code", "program_name", "total_units", "years_to_complete", "status")
COURSE_FIELDS = ("course_code", "course_name", "units", "semester", "status", "year_id")
COURSE_STATUSES = [s.value for s in CourseStatus]


class CatalogService:
    def __init__(self, db: Session):
        self.db = db

    # Programs

    def list_programs(self) -> List[Program]:
        return list(self.db.execute(select(Program).order_by(Program.id)).scalars().all())

    def get_program(self, program_id: int) -> Program:
        program = self.db.get(Program, program_id)
        if not program:
            raise NotFound(f"Program {program_id} not found")
        return program

    def _code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Program.id).where(Program.program_code == code)
        if exclude_id is not None:
            query = query.where(Program.id != exclude_id)
        return self.db.execute(query).first() is not None

    def create_program(self, data: Dict[str, Any], actor: User) -> Program:
        authorize(actor, Permission.MANAGE_CATALOG)
        if self._code_taken(data["program_code"]):
            raise Conflict(f"Program code {data['program_code']} already exists")
        program = Program(**{k: v for k, v in data.items() if k in PROGRAM_FIELDS and v is not None})
        self.db.add(program)
        self.db.flush()
        return program

    def update_program(self, program_id: int, changes: Dict[str, Any], actor: User) -> Program:
        authorize(actor, Permission.MANAGE_CATALOG)
        program = self.get_program(program_id)
        code = changes.get("program_code")
        if code and self._code_taken(code, exclude_id=program.id):
            raise Conflict(f"Program code {code} already exists")
        for key, value in changes.items():
            if key in PROGRAM_FIELDS:
                setattr(program, key, value)
        self.db.flush()
        return program

    def delete_program(self, program_id: int, actor: User) -> None:
        """Rejected while any student or registration references the program."""
        authorize(actor, Permission.MANAGE_CATALOG)
        program = self.get_program(program_id)

        in_use = (
            self.db.execute(select(Student.id).where(Student.program_id == program_id).limit(1)).first()
            or self.db.execute(select(Registration.id).where(Registration.program_id == program_id).limit(1)).first()
        )
        if in_use:
            raise Conflict("Program is in use and cannot be deleted")

        has_years = self.db.execute(select(Year.id).where(Year.program_id == program_id).limit(1)).first()
        if has_years:
            raise Conflict("Program still has year levels; remove them first")

        self.db.delete(program)
        self.db.flush()

    # Year levels

    def list_years(self, program_id: Optional[int] = None) -> List[Year]:
        query = select(Year)
        if program_id is not None:
            query = query.where(Year.program_id == program_id)
        return list(self.db.execute(query.order_by(Year.program_id, Year.year_level)).scalars().all())

    def create_year(self, program_id: int, year_level: int, actor: User) -> Year:
        authorize(actor, Permission.MANAGE_CATALOG)
        self.get_program(program_id)
        if year_level < 1:
            raise ValidationFailed("Year level must be at least 1")

        existing = self.db.execute(
            select(Year).where(and_(Year.program_id == program_id, Year.year_level == year_level))
        ).scalar_one_or_none()
        if existing:
            raise Conflict(f"Program {program_id} already has year level {year_level}")

        year = Year(program_id=program_id, year_level=year_level)
        self.db.add(year)
        self.db.flush()
        return year

    def delete_year(self, year_id: int, actor: User) -> None:
        authorize(actor, Permission.MANAGE_CATALOG)
        year = self.db.get(Year, year_id)
        if not year:
            raise NotFound(f"Year {year_id} not found")
        if self.db.execute(select(Course.id).where(Course.year_id == year_id).limit(1)).first():
            raise Conflict("Year level still has courses and cannot be deleted")
        self.db.delete(year)
        self.db.flush()

    # Courses

    def _validate_course(self, data: Dict[str, Any]) -> None:
        if "semester" in data and data["semester"] not in (1, 2):
            raise ValidationFailed("Semester must be 1 or 2")
        if "units" in data and (data["units"] is None or data["units"] < 0):
            raise ValidationFailed("Units must be zero or more")
        if "status" in data and data["status"] not in COURSE_STATUSES:
            raise ValidationFailed(f"Invalid course status. Expected one of {COURSE_STATUSES}")
        if "year_id" in data and not self.db.get(Year, data["year_id"]):
            raise ValidationFailed(f"Year {data['year_id']} does not exist")

    def list_courses(self, year_id: Optional[int] = None, semester: Optional[int] = None,
                     status: Optional[str] = None) -> List[Course]:
        query = select(Course)
        if year_id is not None:
            query = query.where(Course.year_id == year_id)
        if semester is not None:
            query = query.where(Course.semester == semester)
        if status:
            query = query.where(Course.status == status)
        return list(self.db.execute(query.order_by(Course.year_id, Course.semester, Course.course_code)).scalars().all())

    def get_course(self, course_id: int) -> Course:
        course = self.db.get(Course, course_id)
        if not course:
            raise NotFound(f"Course {course_id} not found")
        return course

    def create_course(self, data: Dict[str, Any], actor: User) -> Course:
        authorize(actor, Permission.MANAGE_CATALOG)
        data = {k: v for k, v in data.items() if k in COURSE_FIELDS and v is not None}
        self._validate_course(data)
        course = Course(**data)
        self.db.add(course)
        self.db.flush()
        return course

    def update_course(self, course_id: int, changes: Dict[str, Any], actor: User) -> Course:
        authorize(actor, Permission.MANAGE_CATALOG)
        course = self.get_course(course_id)
        changes = {k: v for k, v in changes.items() if k in COURSE_FIELDS}
        self._validate_course(changes)
        for key, value in changes.items():
            setattr(course, key, value)
        self.db.flush()
        return course

    def remove_course(self, course_id: int, actor: User) -> Course:
        """Soft delete: enrolled course links keep pointing at the row."""
        return self.update_course(course_id, {"status": CourseStatus.REMOVED.value}, actor)


def get_catalog_service(db: Session) -> CatalogService:
    return CatalogService(db)

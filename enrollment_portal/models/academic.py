# enrollment_portal/models/academic.py - programs, year levels and courses
from __future__ import annotations
import enum
from datetime import datetime

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enrollment_portal.models.base import Base, utcnow


class CourseStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    REMOVED = "Removed"


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    program_name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    years_to_complete: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    years: Mapped[list["Year"]] = relationship("Year", back_populates="program")

    def __repr__(self) -> str:
        return f"<Program id={self.id} {self.program_code}>"


class Year(Base):
    __tablename__ = "years"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="RESTRICT"), index=True, nullable=False)
    year_level: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    program: Mapped["Program"] = relationship("Program", back_populates="years")
    courses: Mapped[list["Course"]] = relationship("Course", back_populates="year")

    __table_args__ = (
        Index("uq_year_program_level", "program_id", "year_level", unique=True),
        CheckConstraint("year_level >= 1", name="ck_year_level_positive"),
    )


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    year_id: Mapped[int] = mapped_column(Integer, ForeignKey("years.id", ondelete="RESTRICT"), index=True, nullable=False)
    course_code: Mapped[str] = mapped_column(String(32), nullable=False)
    course_name: Mapped[str] = mapped_column(String(255), nullable=False)
    units: Mapped[int] = mapped_column(Integer, nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=CourseStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    year: Mapped["Year"] = relationship("Year", back_populates="courses")

    __table_args__ = (
        CheckConstraint("semester IN (1, 2)", name="ck_course_semester"),
        CheckConstraint("units >= 0", name="ck_course_units"),
        CheckConstraint("status IN ('Active','Inactive','Removed')", name="ck_course_status"),
        Index("ix_courses_year_semester", "year_id", "semester"),
    )

    def __repr__(self) -> str:
        return f"<Course id={self.id} {self.course_code} units={self.units} sem={self.semester}>"

# enrollment_portal/models/student.py
from __future__ import annotations
from datetime import datetime

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enrollment_portal.models.base import Base, utcnow


class Student(Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    registration_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("registrations.id", ondelete="SET NULL"), unique=True
    )
    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(128))
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    contact_number: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(String(512))
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="RESTRICT"), index=True, nullable=False)
    year_level: Mapped[int] = mapped_column(Integer, nullable=False)
    is_returning_student: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    program: Mapped["Program"] = relationship("Program")
    enrollments: Mapped[list["Enrollment"]] = relationship("Enrollment", back_populates="student")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Student id={self.id} {self.student_number} {self.email}>"

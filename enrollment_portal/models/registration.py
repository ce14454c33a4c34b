# enrollment_portal/models/registration.py
from __future__ import annotations
import enum
from datetime import datetime

from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Index, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enrollment_portal.models.base import Base, utcnow


class RegistrationStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Registration(Base):
    __tablename__ = "registrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(128))
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    contact_number: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(String(512))
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="RESTRICT"), index=True, nullable=False)
    year_level: Mapped[int] = mapped_column(Integer, nullable=False)
    is_returning_student: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RegistrationStatus.PENDING.value)
    remarks: Mapped[str | None] = mapped_column(String(512))
    reviewed_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    program: Mapped["Program"] = relationship("Program")

    __table_args__ = (
        CheckConstraint("status IN ('Pending','Approved','Rejected')", name="ck_registration_status"),
        CheckConstraint("year_level >= 1", name="ck_registration_year_level"),
        # One open application per e-mail address
        Index(
            "uq_registration_pending_email", "email", unique=True,
            postgresql_where=text("status = 'Pending'"),
            sqlite_where=text("status = 'Pending'"),
        ),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_pending(self) -> bool:
        return self.status == RegistrationStatus.PENDING.value

# enrollment_portal/models/enrollment.py - enrollments, linked courses and documents
from __future__ import annotations
import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Boolean, Numeric, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enrollment_portal.models.base import Base, utcnow


class EnrollmentStatus(str, enum.Enum):
    DRAFT = "Draft"
    FOR_REVIEW = "For Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class PaymentStatus(str, enum.Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class DocumentStatus(str, enum.Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class Enrollment(Base):
    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False)  # "2025-2026"
    semester: Mapped[int] = mapped_column(Integer, nullable=False)

    enrollment_status: Mapped[str] = mapped_column(String(16), nullable=False, default=EnrollmentStatus.DRAFT.value)
    documents_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default=PaymentStatus.UNPAID.value)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    # Bumped on every approval; only payments of the current cycle count toward amount_paid
    billing_cycle: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    approved_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    student: Mapped["Student"] = relationship("Student", back_populates="enrollments")
    documents: Mapped[list["EnrollmentDocument"]] = relationship(
        "EnrollmentDocument", back_populates="enrollment", order_by="EnrollmentDocument.id"
    )
    courses: Mapped[list["EnrollmentCourse"]] = relationship("EnrollmentCourse", back_populates="enrollment")
    payments: Mapped[list["Payment"]] = relationship("Payment", back_populates="enrollment", order_by="Payment.id")

    __table_args__ = (
        Index("uq_enrollment_student_period", "student_id", "academic_year", "semester", unique=True),
        CheckConstraint("semester IN (1, 2)", name="ck_enrollment_semester"),
        CheckConstraint(
            "enrollment_status IN ('Draft','For Review','Approved','Rejected')",
            name="ck_enrollment_status",
        ),
        CheckConstraint("payment_status IN ('Unpaid','Partial','Paid')", name="ck_enrollment_payment_status"),
        CheckConstraint("total_amount >= 0", name="ck_enrollment_total_nonneg"),
        CheckConstraint("amount_paid >= 0", name="ck_enrollment_paid_nonneg"),
    )

    @property
    def balance(self) -> Decimal:
        return Decimal(self.total_amount or 0) - Decimal(self.amount_paid or 0)

    def __repr__(self) -> str:
        return (f"<Enrollment id={self.id} student={self.student_id} {self.academic_year} "
                f"S{self.semester} {self.enrollment_status} {self.amount_paid}/{self.total_amount}>")


class EnrollmentCourse(Base):
    __tablename__ = "enrollment_courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Enrolled")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    enrollment: Mapped["Enrollment"] = relationship("Enrollment", back_populates="courses")
    course: Mapped["Course"] = relationship("Course")

    __table_args__ = (
        Index("uq_enrollment_course", "enrollment_id", "course_id", unique=True),
    )


class EnrollmentDocument(Base):
    __tablename__ = "enrollment_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), index=True, nullable=False)
    document_type: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=DocumentStatus.PENDING.value)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    verified_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    verified_at: Mapped[datetime | None] = mapped_column(DateTime)

    enrollment: Mapped["Enrollment"] = relationship("Enrollment", back_populates="documents")

    __table_args__ = (
        CheckConstraint("status IN ('Pending','Verified','Rejected')", name="ck_document_status"),
    )

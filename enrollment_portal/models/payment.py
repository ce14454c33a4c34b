# enrollment_portal/models/payment.py - append-only payment ledger
from __future__ import annotations
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, Index, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enrollment_portal.models.base import Base, utcnow

# Method of the amount-due row written when an enrollment is approved
PLACEHOLDER_METHOD = "Pending"


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), index=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(128))
    billing_cycle: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    enrollment: Mapped["Enrollment"] = relationship("Enrollment", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payment_amount_nonneg"),
        Index(
            "uq_payment_placeholder", "enrollment_id", unique=True,
            postgresql_where=text("payment_method = 'Pending'"),
            sqlite_where=text("payment_method = 'Pending'"),
        ),
    )

    @property
    def is_placeholder(self) -> bool:
        return self.payment_method == PLACEHOLDER_METHOD

    def __repr__(self) -> str:
        return f"<Payment id={self.id} enrollment={self.enrollment_id} {self.payment_method} amt={self.amount}>"

# enrollment_portal/services/payments.py
"""
Payment ledger.

Payments are append-only. ``Enrollment.amount_paid`` is kept equal to the sum
of the real (non-placeholder) payments of the enrollment's current billing
cycle, recomputed from the ledger inside the same transaction as the insert.

Overpayment policy: a payment larger than the outstanding balance is recorded
at the balance and the excess is reported back as change due. A payment
against an enrollment with nothing outstanding is rejected.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, and_, func
from sqlalchemy.orm import Session

from enrollment_portal.core.errors import EnrollmentNotFound, InvalidAmount, ValidationFailed
from enrollment_portal.models.base import utcnow
from enrollment_portal.models.enrollment import Enrollment, PaymentStatus
from enrollment_portal.models.payment import Payment, PLACEHOLDER_METHOD
from enrollment_portal.services.fees import to_money
from enrollment_portal.services.locking import lock_row

logger = logging.getLogger(__name__)


@dataclass
class PaymentReceipt:
    payment: Payment
    enrollment: Enrollment
    tendered: Decimal
    change_due: Decimal


def derive_payment_status(paid: Decimal, total: Decimal) -> str:
    if paid >= total and total > 0:
        return PaymentStatus.PAID.value
    if paid > 0:
        return PaymentStatus.PARTIAL.value
    return PaymentStatus.UNPAID.value


class PaymentLedger:
    def __init__(self, db: Session):
        self.db = db

    def paid_in_cycle(self, enrollment: Enrollment) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                and_(
                    Payment.enrollment_id == enrollment.id,
                    Payment.billing_cycle == enrollment.billing_cycle,
                    Payment.payment_method != PLACEHOLDER_METHOD,
                )
            )
        ).scalar_one()
        return to_money(total)

    def refresh_totals(self, enrollment: Enrollment) -> Enrollment:
        """Re-derive amount_paid and payment_status from the ledger."""
        self.db.flush()
        paid = self.paid_in_cycle(enrollment)
        enrollment.amount_paid = paid
        enrollment.payment_status = derive_payment_status(paid, to_money(enrollment.total_amount))
        self.db.flush()
        return enrollment

    def record_payment(
        self,
        enrollment_id: int,
        amount,
        method: str,
        reference: Optional[str] = None,
    ) -> PaymentReceipt:
        tendered = to_money(amount)
        if tendered <= 0:
            raise InvalidAmount("Amount must be greater than 0")

        method = (method or "").strip()
        if not method:
            raise ValidationFailed("Payment method is required")
        if method == PLACEHOLDER_METHOD:
            raise InvalidAmount(f"'{PLACEHOLDER_METHOD}' is reserved for amounts due")

        enrollment = lock_row(self.db, Enrollment, enrollment_id)
        if not enrollment:
            raise EnrollmentNotFound(f"Enrollment {enrollment_id} not found")

        outstanding = to_money(enrollment.total_amount) - self.paid_in_cycle(enrollment)
        if outstanding <= 0:
            raise InvalidAmount(f"Enrollment {enrollment_id} has no outstanding balance")

        recorded = min(tendered, outstanding)
        change_due = tendered - recorded

        payment = Payment(
            enrollment_id=enrollment.id,
            amount=recorded,
            payment_method=method,
            reference_number=(reference or None),
            billing_cycle=enrollment.billing_cycle,
            payment_date=utcnow(),
        )
        self.db.add(payment)
        self.refresh_totals(enrollment)

        logger.info(
            f"Payment {recorded} ({method}) on enrollment {enrollment.id}: "
            f"paid {enrollment.amount_paid}/{enrollment.total_amount}, change {change_due}"
        )
        return PaymentReceipt(payment=payment, enrollment=enrollment, tendered=tendered, change_due=change_due)

    def ensure_placeholder(self, enrollment: Enrollment) -> Payment:
        """At most one amount-due row per enrollment; the caller holds the enrollment lock."""
        existing = self.db.execute(
            select(Payment).where(
                and_(
                    Payment.enrollment_id == enrollment.id,
                    Payment.payment_method == PLACEHOLDER_METHOD,
                )
            )
        ).scalar_one_or_none()
        if existing:
            # Amount due follows the current cycle's total
            existing.amount = to_money(enrollment.total_amount)
            existing.billing_cycle = enrollment.billing_cycle
            self.db.flush()
            return existing

        placeholder = Payment(
            enrollment_id=enrollment.id,
            amount=to_money(enrollment.total_amount),
            payment_method=PLACEHOLDER_METHOD,
            billing_cycle=enrollment.billing_cycle,
            payment_date=utcnow(),
        )
        self.db.add(placeholder)
        self.db.flush()
        return placeholder

    def payments_for_enrollment(self, enrollment_id: int, include_placeholders: bool = False) -> list[Payment]:
        query = select(Payment).where(Payment.enrollment_id == enrollment_id)
        if not include_placeholders:
            query = query.where(Payment.payment_method != PLACEHOLDER_METHOD)
        return list(self.db.execute(query.order_by(Payment.id.desc())).scalars().all())

    def payments_for_student(self, student_id: int, include_placeholders: bool = False) -> list[Payment]:
        query = (
            select(Payment)
            .join(Enrollment, Enrollment.id == Payment.enrollment_id)
            .where(Enrollment.student_id == student_id)
        )
        if not include_placeholders:
            query = query.where(Payment.payment_method != PLACEHOLDER_METHOD)
        return list(self.db.execute(query.order_by(Payment.created_at.desc(), Payment.id.desc())).scalars().all())


def get_payment_ledger(db: Session) -> PaymentLedger:
    return PaymentLedger(db)

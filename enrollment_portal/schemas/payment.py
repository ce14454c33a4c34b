# enrollment_portal/schemas/payment.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from enrollment_portal.models.payment import Payment


class PaymentCreate(BaseModel):
    enrollment_id: int
    amount: Decimal
    payment_method: str  # Cash / GCash / Bank
    reference_number: str | None = None


class PaymentOut(BaseModel):
    id: int
    enrollment_id: int
    amount: float
    payment_method: str
    reference_number: str | None
    payment_date: datetime
    is_placeholder: bool = False

    @classmethod
    def from_model(cls, p: Payment) -> "PaymentOut":
        return cls(
            id=p.id,
            enrollment_id=p.enrollment_id,
            amount=float(p.amount),
            payment_method=p.payment_method,
            reference_number=p.reference_number,
            payment_date=p.payment_date,
            is_placeholder=p.is_placeholder,
        )


class PaymentReceiptOut(BaseModel):
    payment: PaymentOut
    tendered: float
    change_due: float
    amount_paid: float
    total_amount: float
    balance: float
    payment_status: str

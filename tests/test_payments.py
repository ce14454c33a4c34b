# tests/test_payments.py
from decimal import Decimal

import pytest

from enrollment_portal.core.errors import EnrollmentNotFound, InvalidAmount, ValidationFailed
from enrollment_portal.models import PaymentStatus
from enrollment_portal.services.payments import PaymentLedger, derive_payment_status

from tests.conftest import make_student


@pytest.fixture
def enrollment(db, curriculum, enrollment_service):
    program, _ = curriculum
    student = make_student(db, program.id)
    return enrollment_service.create_initial_enrollment(student.id, program.id, 1)


def test_partial_then_full_payment(db, enrollment):
    ledger = PaymentLedger(db)

    first = ledger.record_payment(enrollment.id, Decimal("5000"), "Cash")
    assert first.change_due == Decimal("0.00")
    assert enrollment.amount_paid == Decimal("5000.00")
    assert enrollment.payment_status == PaymentStatus.PARTIAL.value

    ledger.record_payment(enrollment.id, "4500", "GCash", reference="GC-123")
    assert enrollment.amount_paid == Decimal("9500.00")
    assert enrollment.payment_status == PaymentStatus.PAID.value
    assert enrollment.balance == Decimal("0.00")


def test_single_full_payment_marks_paid(db, enrollment):
    receipt = PaymentLedger(db).record_payment(enrollment.id, 9500, "Cash")

    assert receipt.payment.amount == Decimal("9500.00")
    assert receipt.enrollment.payment_status == PaymentStatus.PAID.value


def test_overpayment_is_capped_and_change_reported(db, enrollment):
    ledger = PaymentLedger(db)
    ledger.record_payment(enrollment.id, 9000, "Cash")

    receipt = ledger.record_payment(enrollment.id, 1000, "Cash")
    assert receipt.tendered == Decimal("1000.00")
    assert receipt.payment.amount == Decimal("500.00")
    assert receipt.change_due == Decimal("500.00")
    assert enrollment.amount_paid == enrollment.total_amount


def test_payment_against_settled_enrollment_is_rejected(db, enrollment):
    ledger = PaymentLedger(db)
    ledger.record_payment(enrollment.id, 9500, "Cash")

    with pytest.raises(InvalidAmount):
        ledger.record_payment(enrollment.id, 100, "Cash")
    assert len(ledger.payments_for_enrollment(enrollment.id)) == 1


@pytest.mark.parametrize("amount", [0, -50, "0.001"])
def test_non_positive_amounts_are_rejected(db, enrollment, amount):
    with pytest.raises(InvalidAmount):
        PaymentLedger(db).record_payment(enrollment.id, amount, "Cash")


def test_reserved_and_blank_methods_are_rejected(db, enrollment):
    ledger = PaymentLedger(db)
    with pytest.raises(InvalidAmount):
        ledger.record_payment(enrollment.id, 100, "Pending")
    with pytest.raises(ValidationFailed):
        ledger.record_payment(enrollment.id, 100, "  ")


def test_unknown_enrollment(db):
    with pytest.raises(EnrollmentNotFound) as exc:
        PaymentLedger(db).record_payment(4242, 100, "Cash")
    assert exc.value.kind == "EnrollmentNotFound"
    assert exc.value.status_code == 404


def test_amount_paid_always_matches_ledger(db, enrollment):
    ledger = PaymentLedger(db)
    for amount in ("1200.50", "300", "2000.25"):
        ledger.record_payment(enrollment.id, amount, "Cash")
        assert enrollment.amount_paid == ledger.paid_in_cycle(enrollment)

    assert enrollment.amount_paid == Decimal("3500.75")
    assert enrollment.amount_paid <= enrollment.total_amount


def test_student_history_is_newest_first(db, enrollment):
    ledger = PaymentLedger(db)
    a = ledger.record_payment(enrollment.id, 100, "Cash").payment
    b = ledger.record_payment(enrollment.id, 200, "Cash").payment

    history = ledger.payments_for_student(enrollment.student_id)
    assert [p.id for p in history] == [b.id, a.id]


@pytest.mark.parametrize("paid, total, expected", [
    (Decimal("0"), Decimal("9500"), "Unpaid"),
    (Decimal("1"), Decimal("9500"), "Partial"),
    (Decimal("9500"), Decimal("9500"), "Paid"),
    (Decimal("0"), Decimal("0"), "Unpaid"),
])
def test_derive_payment_status(paid, total, expected):
    assert derive_payment_status(paid, total) == expected

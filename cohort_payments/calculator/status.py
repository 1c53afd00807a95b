"""
Installment and aggregate payment status derivation.

One deriver serves both the admin and the student views; display text comes
from the label tables below rather than from the callers.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

from cohort_payments.core.enums import PaymentStatus
from cohort_payments.core.exceptions import ValidationError

from .money import DateLike, parse_calendar_date, to_decimal

# Unpaid installments due at least this many days out are "upcoming" rather than "pending".
DUE_SOON_DAYS = 10

# Aggregate ranking, lowest to highest. Tune here, not in derive_aggregate_status.
STATUS_PRIORITY: Dict[PaymentStatus, int] = {
    PaymentStatus.PAID: 0,
    PaymentStatus.PENDING: 1,
    PaymentStatus.PENDING_10_PLUS_DAYS: 2,
    PaymentStatus.PARTIALLY_PAID_DAYS_LEFT: 3,
    PaymentStatus.VERIFICATION_PENDING: 4,
    PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING: 5,
    PaymentStatus.PARTIALLY_PAID_OVERDUE: 6,
    PaymentStatus.OVERDUE: 7,
}

STATUS_LABELS: Dict[PaymentStatus, str] = {
    PaymentStatus.PAID: "Paid",
    PaymentStatus.PENDING: "Pending",
    PaymentStatus.PENDING_10_PLUS_DAYS: "Upcoming",
    PaymentStatus.PARTIALLY_PAID_DAYS_LEFT: "Partially Paid",
    PaymentStatus.VERIFICATION_PENDING: "Verification Pending",
    PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING: "Partially Paid (Verification Pending)",
    PaymentStatus.PARTIALLY_PAID_OVERDUE: "Partially Paid (Overdue)",
    PaymentStatus.OVERDUE: "Overdue",
}

AGGREGATE_STATUS_LABELS: Dict[PaymentStatus, str] = {
    PaymentStatus.PAID: "All Payments Complete",
    PaymentStatus.PENDING: "Payments Pending",
    PaymentStatus.PENDING_10_PLUS_DAYS: "Payments Upcoming",
    PaymentStatus.PARTIALLY_PAID_DAYS_LEFT: "Partially Paid",
    PaymentStatus.VERIFICATION_PENDING: "Verification Pending",
    PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING: "Verification Pending",
    PaymentStatus.PARTIALLY_PAID_OVERDUE: "Payments Overdue",
    PaymentStatus.OVERDUE: "Payments Overdue",
}


def _status(value: Any) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        raise ValidationError("status", value, "unknown payment status")


def _amount(value: Any, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(field, value, "cannot be negative")
    return amount


def days_until_due(due_date: DateLike, today: Optional[date] = None) -> int:
    """Whole calendar days from today to the due date; negative once overdue."""
    due = parse_calendar_date(due_date, "due_date")
    current = parse_calendar_date(today, "today") if today is not None else date.today()
    return (due - current).days


def derive_installment_status(
    due_date: DateLike,
    amount_paid: Any,
    amount_payable: Any,
    has_verification_pending_tx: bool = False,
    has_approved_tx: bool = False,
    today: Optional[date] = None,
) -> PaymentStatus:
    """
    Derive one installment's status.

    ``amount_paid`` is everything allocated to the installment, including
    amounts still awaiting verification. Rules are checked in order; the
    first match wins.
    """
    paid = _amount(amount_paid, "amount_paid")
    payable = _amount(amount_payable, "amount_payable")
    days_left = days_until_due(due_date, today)
    covered = paid >= payable

    if has_approved_tx and covered:
        return PaymentStatus.PAID
    if has_verification_pending_tx and covered:
        return PaymentStatus.VERIFICATION_PENDING
    if has_verification_pending_tx and paid > 0:
        return PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING
    if covered:
        return PaymentStatus.PAID
    if days_left < 0:
        return PaymentStatus.PARTIALLY_PAID_OVERDUE if paid > 0 else PaymentStatus.OVERDUE
    if paid > 0:
        return PaymentStatus.PARTIALLY_PAID_DAYS_LEFT
    if days_left >= DUE_SOON_DAYS:
        return PaymentStatus.PENDING_10_PLUS_DAYS
    return PaymentStatus.PENDING


def derive_aggregate_status(
    statuses: Iterable[Any],
    priority: Mapping[PaymentStatus, int] = STATUS_PRIORITY,
) -> PaymentStatus:
    """Most urgent status across a student's installments. Empty input is ``pending``."""
    highest: Optional[PaymentStatus] = None
    for raw in statuses:
        current = _status(raw)
        if current not in priority:
            raise ValidationError("status", raw, "missing from priority table")
        if highest is None or priority[current] > priority[highest]:
            highest = current
    return highest if highest is not None else PaymentStatus.PENDING


def status_label(status: Any) -> str:
    return STATUS_LABELS[_status(status)]


def aggregate_status_label(status: Any) -> str:
    return AGGREGATE_STATUS_LABELS[_status(status)]


def is_overdue(status: Any) -> bool:
    return _status(status) in (PaymentStatus.OVERDUE, PaymentStatus.PARTIALLY_PAID_OVERDUE)


def is_verification_pending(status: Any) -> bool:
    return _status(status) in (
        PaymentStatus.VERIFICATION_PENDING,
        PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING,
    )


def is_settled(status: Any) -> bool:
    return _status(status) == PaymentStatus.PAID

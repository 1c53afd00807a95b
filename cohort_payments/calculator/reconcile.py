"""Apply a transaction log to a stored schedule snapshot and re-derive statuses."""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from cohort_payments.core.enums import VerificationStatus
from cohort_payments.core.exceptions import ArithmeticConsistencyError, ValidationError

from .money import from_cents, to_cents
from .schedule import build_summary
from .schemas import Installment, InstallmentError, PaymentBreakdown, Schedule, TransactionRecord
from .status import aggregate_status_label, derive_aggregate_status, derive_installment_status

logger = logging.getLogger(__name__)


class _Allocation:
    __slots__ = ("approved", "in_flight", "has_approved", "has_pending", "error")

    def __init__(self) -> None:
        self.approved = 0
        self.in_flight = 0
        self.has_approved = False
        self.has_pending = False
        self.error: Optional[ValidationError] = None


def _allocate(transactions: Iterable[TransactionRecord]) -> Dict[int, _Allocation]:
    allocations: Dict[int, _Allocation] = defaultdict(_Allocation)
    for tx in transactions:
        if tx.verification_status == VerificationStatus.REJECTED:
            continue
        alloc = allocations[tx.installment_number]
        cents = to_cents(tx.amount, "amount")
        if cents < 0:
            alloc.error = ValidationError("amount", tx.amount, "cannot be negative")
            continue
        if tx.verification_status == VerificationStatus.APPROVED:
            alloc.approved += cents
            alloc.has_approved = True
        else:
            alloc.in_flight += cents
            alloc.has_pending = True
    return allocations


def _derive(inst: Installment, alloc: _Allocation, today: Optional[date]) -> Installment:
    if alloc.error is not None:
        raise alloc.error
    amount = to_cents(inst.amount, "amount")
    if alloc.approved > amount:
        raise ValidationError(
            "amount_paid",
            from_cents(alloc.approved),
            f"approved payments exceed installment amount {inst.amount}",
        )
    status = derive_installment_status(
        inst.due_date,
        from_cents(alloc.approved + alloc.in_flight),
        inst.amount,
        has_verification_pending_tx=alloc.has_pending,
        # Settled only once approved money alone covers the installment.
        has_approved_tx=alloc.has_approved and alloc.approved >= amount,
        today=today,
    )
    return inst.model_copy(
        update={
            "status": status,
            "amount_paid": from_cents(alloc.approved),
            "amount_pending": from_cents(amount - alloc.approved),
        }
    )


def check_coverage(installments: Iterable[Installment]) -> None:
    for inst in installments:
        paid = to_cents(inst.amount_paid, "amount_paid")
        pending = to_cents(inst.amount_pending, "amount_pending")
        if paid + pending != to_cents(inst.amount, "amount"):
            raise ArithmeticConsistencyError(
                f"Installment {inst.installment_number}: paid {inst.amount_paid} + pending "
                f"{inst.amount_pending} != amount {inst.amount}"
            )


def apply_transactions(
    schedule: Schedule,
    transactions: Iterable[TransactionRecord],
    today: Optional[date] = None,
) -> PaymentBreakdown:
    """
    Recompute paid/pending amounts and statuses for every installment,
    including the admission entry when the schedule has one.

    Only approved amounts count as paid. Amounts awaiting verification count
    toward the status (so a fully covered but unverified installment shows
    ``verification_pending``) but not toward ``amount_paid``.

    A failure on one installment is reported in ``errors``; that installment
    keeps its stored values and is left out of the aggregate status.
    """
    allocations = _allocate(transactions)
    payable = schedule.payable_installments()
    known = {inst.installment_number for inst in payable}
    errors: List[InstallmentError] = []
    derived_statuses = []
    updated: List[Installment] = []

    for inst in payable:
        try:
            new_inst = _derive(inst, allocations.get(inst.installment_number, _Allocation()), today)
        except ValidationError as e:
            logger.warning("Status derivation failed for installment %s: %s", inst.installment_number, e.message)
            errors.append(InstallmentError(installment_number=inst.installment_number, field=e.field, message=e.message))
            updated.append(inst)
            continue
        updated.append(new_inst)
        derived_statuses.append(new_inst.status)

    for number in sorted(set(allocations) - known):
        message = f"Transactions reference unknown installment {number}"
        logger.warning(message)
        errors.append(InstallmentError(installment_number=number, field="installment_number", message=message))

    check_coverage(updated)
    aggregate = derive_aggregate_status(derived_statuses)
    paid_cents = sum(to_cents(inst.amount_paid, "amount_paid") for inst in updated)
    pending_cents = sum(to_cents(inst.amount_pending, "amount_pending") for inst in updated)
    admission = None
    installments = updated
    if schedule.admission_installment is not None:
        admission, installments = updated[0], updated[1:]
    new_schedule = schedule.model_copy(
        update={
            "installments": installments,
            "admission_installment": admission,
            "summary": build_summary(installments, schedule.total_amount, admission),
        }
    )
    return PaymentBreakdown(
        schedule=new_schedule,
        aggregate_status=aggregate,
        aggregate_label=aggregate_status_label(aggregate),
        total_paid=from_cents(paid_cents),
        total_pending=from_cents(pending_cents),
        errors=errors,
    )

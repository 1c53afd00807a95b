"""Unit tests for applying a transaction log to a schedule snapshot."""

from datetime import date
from decimal import Decimal

from cohort_payments.calculator import TransactionRecord, apply_transactions, generate_schedule
from cohort_payments.calculator.schedule import ADMISSION_INSTALLMENT_NUMBER
from cohort_payments.core.enums import PaymentStatus, VerificationStatus

FEE_STRUCTURE = {
    "total_program_fee": 120000,
    "admission_fee": 20000,
    "number_of_semesters": 4,
    "instalments_per_semester": 1,
}

START = date(2024, 1, 15)


def _tx(number, amount, state=VerificationStatus.APPROVED) -> TransactionRecord:
    return TransactionRecord(installment_number=number, amount=Decimal(str(amount)), verification_status=state)


def _schedule():
    # Admission 20000 due 2024-01-15, then 4 semester installments of 30000
    # due Jan 2024, Jul 2024, Jan 2025, Jul 2025
    return generate_schedule("sem_wise", FEE_STRUCTURE, START)


def _admission_paid():
    return _tx(ADMISSION_INSTALLMENT_NUMBER, 20000)


def test_no_transactions_leaves_everything_pending() -> None:
    breakdown = apply_transactions(_schedule(), [], today=date(2024, 1, 1))
    assert breakdown.schedule.admission_installment.status == PaymentStatus.PENDING_10_PLUS_DAYS
    assert [i.status for i in breakdown.schedule.installments] == [
        PaymentStatus.PENDING_10_PLUS_DAYS,
    ] * 4
    assert breakdown.total_paid == Decimal("0.00")
    assert breakdown.total_pending == Decimal("140000.00")
    assert breakdown.aggregate_status == PaymentStatus.PENDING_10_PLUS_DAYS
    assert breakdown.errors == []


def test_approved_payment_settles_installment() -> None:
    breakdown = apply_transactions(_schedule(), [_tx(1, 30000)], today=date(2024, 2, 1))
    first = breakdown.schedule.installments[0]
    assert first.status == PaymentStatus.PAID
    assert first.amount_paid == Decimal("30000.00")
    assert first.amount_pending == Decimal("0.00")
    # 30000 of 140000 paid
    assert breakdown.schedule.summary.completion_percentage == Decimal("21.43")
    # Admission fee is still owed and now past due
    admission = breakdown.schedule.admission_installment
    assert admission.status == PaymentStatus.OVERDUE
    assert breakdown.schedule.summary.next_due_date == date(2024, 1, 15)
    assert breakdown.schedule.summary.next_due_amount == Decimal("20000.00")
    assert breakdown.aggregate_status == PaymentStatus.OVERDUE


def test_paying_admission_and_installments_completes_schedule() -> None:
    schedule = _schedule()
    log = [_admission_paid()] + [_tx(n, 30000) for n in range(1, 5)]
    breakdown = apply_transactions(schedule, log, today=date(2026, 1, 1))
    assert breakdown.schedule.admission_installment.status == PaymentStatus.PAID
    assert breakdown.schedule.summary.completion_percentage == Decimal("100.00")
    assert breakdown.schedule.summary.next_due_date is None
    assert breakdown.total_paid == Decimal("140000.00")
    assert breakdown.total_pending == Decimal("0.00")
    assert breakdown.aggregate_status == PaymentStatus.PAID


def test_installments_alone_do_not_complete_schedule() -> None:
    log = [_tx(n, 30000) for n in range(1, 5)]
    breakdown = apply_transactions(_schedule(), log, today=date(2026, 1, 1))
    assert breakdown.total_pending == Decimal("20000.00")
    assert breakdown.aggregate_status == PaymentStatus.OVERDUE
    assert breakdown.schedule.summary.next_due_amount == Decimal("20000.00")


def test_split_payments_accumulate() -> None:
    breakdown = apply_transactions(
        _schedule(),
        [_tx(1, 10000), _tx(1, "12500.50"), _tx(1, "7499.50")],
        today=date(2024, 2, 1),
    )
    first = breakdown.schedule.installments[0]
    assert first.status == PaymentStatus.PAID
    assert first.amount_paid + first.amount_pending == first.amount


def test_pending_verification_counts_for_status_not_for_paid() -> None:
    breakdown = apply_transactions(
        _schedule(),
        [_admission_paid(), _tx(1, 10000), _tx(1, 5000, VerificationStatus.VERIFICATION_PENDING)],
        today=date(2024, 2, 1),
    )
    first = breakdown.schedule.installments[0]
    assert first.status == PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING
    assert first.amount_paid == Decimal("10000.00")
    assert first.amount_pending == Decimal("20000.00")
    assert breakdown.aggregate_status == PaymentStatus.PARTIALLY_PAID_VERIFICATION_PENDING


def test_unverified_remainder_is_not_paid() -> None:
    breakdown = apply_transactions(
        _schedule(),
        [_admission_paid(), _tx(1, 10000), _tx(1, 20000, VerificationStatus.VERIFICATION_PENDING)],
        today=date(2024, 2, 1),
    )
    first = breakdown.schedule.installments[0]
    assert first.status == PaymentStatus.VERIFICATION_PENDING
    assert first.amount_paid == Decimal("10000.00")
    assert first.amount_pending == Decimal("20000.00")
    assert breakdown.schedule.summary.next_due_date == date(2024, 1, 15)
    assert breakdown.schedule.summary.next_due_amount == Decimal("20000.00")
    assert breakdown.aggregate_status == PaymentStatus.VERIFICATION_PENDING


def test_rejected_transactions_are_ignored() -> None:
    breakdown = apply_transactions(
        _schedule(),
        [_admission_paid(), _tx(1, 30000, VerificationStatus.REJECTED)],
        today=date(2024, 2, 1),
    )
    first = breakdown.schedule.installments[0]
    assert first.status == PaymentStatus.OVERDUE
    assert first.amount_paid == Decimal("0.00")
    assert breakdown.aggregate_status == PaymentStatus.OVERDUE


def test_coverage_holds_after_any_sequence() -> None:
    schedule = _schedule()
    log = []
    for number, amount in [(1, 1000), (0, 5000), (2, "2999.99"), (1, 29000), (3, "0.01"), (2, 27000), (0, 15000)]:
        log.append(_tx(number, amount))
        breakdown = apply_transactions(schedule, log, today=date(2024, 8, 1))
        for inst in breakdown.schedule.payable_installments():
            assert inst.amount_paid + inst.amount_pending == inst.amount
        assert breakdown.total_paid + breakdown.total_pending == Decimal("140000.00")
        schedule = breakdown.schedule


def test_over_allocated_installment_is_isolated() -> None:
    breakdown = apply_transactions(
        _schedule(),
        [_admission_paid(), _tx(1, 40000), _tx(2, 30000)],
        today=date(2024, 8, 1),
    )
    assert len(breakdown.errors) == 1
    assert breakdown.errors[0].installment_number == 1
    assert breakdown.errors[0].field == "amount_paid"
    first, second = breakdown.schedule.installments[:2]
    # Failed installment keeps its stored values; the others are still derived
    assert first.status == PaymentStatus.PENDING
    assert first.amount_paid == Decimal("0.00")
    assert second.status == PaymentStatus.PAID
    assert breakdown.aggregate_status == PaymentStatus.PENDING_10_PLUS_DAYS


def test_negative_amount_is_isolated() -> None:
    breakdown = apply_transactions(
        _schedule(),
        [_tx(2, -5), _tx(1, 30000)],
        today=date(2024, 2, 1),
    )
    assert [(e.installment_number, e.field) for e in breakdown.errors] == [(2, "amount")]
    assert breakdown.schedule.installments[0].status == PaymentStatus.PAID


def test_unknown_installment_reported() -> None:
    breakdown = apply_transactions(_schedule(), [_tx(9, 100)], today=date(2024, 1, 1))
    assert [(e.installment_number, e.field) for e in breakdown.errors] == [(9, "installment_number")]
    assert breakdown.total_paid == Decimal("0.00")


def test_one_shot_has_no_admission_entry() -> None:
    schedule = generate_schedule("one_shot", FEE_STRUCTURE, START)
    breakdown = apply_transactions(schedule, [_tx(0, 100)], today=date(2024, 1, 1))
    assert breakdown.schedule.admission_installment is None
    assert [(e.installment_number, e.field) for e in breakdown.errors] == [(0, "installment_number")]


def test_input_schedule_is_not_mutated() -> None:
    schedule = _schedule()
    before = schedule.model_dump_json()
    apply_transactions(schedule, [_tx(1, 30000)], today=date(2024, 2, 1))
    assert schedule.model_dump_json() == before

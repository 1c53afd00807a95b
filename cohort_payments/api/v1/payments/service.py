"""Payments service: scholarship grants, schedule snapshots, transactions. Financial logic with audit."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cohort_payments.api.v1.audit import log_payment_audit
from cohort_payments.api.v1.fee_structures.service import load_fee_structure
from cohort_payments.calculator import (
    PaymentBreakdown,
    Schedule,
    TransactionRecord,
    apply_transactions,
    compose_discount,
    generate_schedule,
)
from cohort_payments.core.enums import VerificationDecision, VerificationStatus
from cohort_payments.core.exceptions import ServiceError
from cohort_payments.core.models import (
    CohortScholarship,
    PaymentTransaction,
    StudentPayment,
    StudentScholarship,
)

from .schemas import (
    PaymentCreate,
    ScheduleGenerateRequest,
    SchedulePreviewRequest,
    ScholarshipGrant,
    StudentPaymentResponse,
    StudentScholarshipAssign,
    StudentScholarshipResponse,
    TransactionResponse,
    VerifyTransactionRequest,
)

logger = logging.getLogger(__name__)

CONCURRENT_UPDATE_MESSAGE = "Payment record was modified concurrently; reload and retry"


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _now() -> datetime:
    return datetime.now(timezone.utc)


# --- Scholarship grant ---
async def _get_cohort_scholarship(db: AsyncSession, cohort_id: UUID, scholarship_id: UUID) -> CohortScholarship:
    sch = await db.get(CohortScholarship, scholarship_id)
    if not sch or sch.cohort_id != cohort_id:
        raise ServiceError("Invalid scholarship for this cohort", status.HTTP_400_BAD_REQUEST)
    return sch


async def get_scholarship_grant(db: AsyncSession, student_id: UUID) -> ScholarshipGrant:
    """Base + additional discount for a student. A student without a grant gets 0/0."""
    ss = (
        await db.execute(
            select(StudentScholarship)
            .where(StudentScholarship.student_id == student_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not ss:
        return ScholarshipGrant()
    return ScholarshipGrant(
        scholarship_id=ss.scholarship_id,
        scholarship_name=ss.scholarship.name if ss.scholarship else None,
        scholarship_percentage=_to_decimal(ss.scholarship.amount_percentage) if ss.scholarship else Decimal("0"),
        additional_discount_percentage=_to_decimal(ss.additional_discount_percentage),
    )


async def assign_student_scholarship(
    db: AsyncSession,
    student_id: UUID,
    payload: StudentScholarshipAssign,
) -> StudentScholarshipResponse:
    sch = None
    if payload.scholarship_id is not None:
        sch = await _get_cohort_scholarship(db, payload.cohort_id, payload.scholarship_id)
    base = _to_decimal(sch.amount_percentage) if sch else Decimal("0")
    composition = compose_discount(base, payload.additional_discount_percentage)

    ss = (
        await db.execute(select(StudentScholarship).where(StudentScholarship.student_id == student_id))
    ).scalar_one_or_none()
    old_value = None
    if ss:
        old_value = {
            "scholarship_id": str(ss.scholarship_id) if ss.scholarship_id else None,
            "additional_discount_percentage": str(ss.additional_discount_percentage),
        }
        ss.cohort_id = payload.cohort_id
        ss.scholarship = sch
        ss.additional_discount_percentage = payload.additional_discount_percentage
        ss.description = (payload.description or "").strip() or None
        ss.assigned_by = payload.assigned_by
    else:
        ss = StudentScholarship(
            student_id=student_id,
            cohort_id=payload.cohort_id,
            scholarship=sch,
            additional_discount_percentage=payload.additional_discount_percentage,
            description=(payload.description or "").strip() or None,
            assigned_by=payload.assigned_by,
        )
        db.add(ss)
    try:
        await db.flush()
        await log_payment_audit(
            db, "student_scholarships", ss.id,
            "UPDATE" if old_value else "CREATE",
            old_value,
            {
                "scholarship_id": str(payload.scholarship_id) if payload.scholarship_id else None,
                "additional_discount_percentage": str(payload.additional_discount_percentage),
                "total_percentage": str(composition.total_percentage),
            },
            payload.assigned_by,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Scholarship already assigned to this student", status.HTTP_409_CONFLICT)
    return StudentScholarshipResponse(
        student_id=student_id,
        cohort_id=payload.cohort_id,
        scholarship_id=payload.scholarship_id,
        scholarship_name=sch.name if sch else None,
        scholarship_percentage=base,
        additional_discount_percentage=payload.additional_discount_percentage,
        total_percentage=composition.total_percentage,
        warning=composition.warning,
    )


# --- Schedule ---
async def preview_schedule(db: AsyncSession, payload: SchedulePreviewRequest) -> Schedule:
    """Generate a schedule from the cohort fee structure without persisting anything."""
    fs = await load_fee_structure(db, payload.cohort_id)
    base = Decimal("0")
    if payload.scholarship_id is not None:
        sch = await _get_cohort_scholarship(db, payload.cohort_id, payload.scholarship_id)
        base = _to_decimal(sch.amount_percentage)
    return generate_schedule(
        payload.payment_plan,
        fs,
        payload.start_date,
        scholarship_percentage=base,
        additional_discount_percentage=payload.additional_discount_percentage,
    )


async def _get_student_payment(db: AsyncSession, student_id: UUID) -> StudentPayment:
    sp = (
        await db.execute(select(StudentPayment).where(StudentPayment.student_id == student_id))
    ).scalar_one_or_none()
    if not sp:
        raise ServiceError("No payment schedule for this student", status.HTTP_404_NOT_FOUND)
    return sp


async def _list_transaction_rows(
    db: AsyncSession,
    student_payment_id: UUID,
    installment_number: Optional[int] = None,
) -> List[PaymentTransaction]:
    stmt = select(PaymentTransaction).where(PaymentTransaction.student_payment_id == student_payment_id)
    if installment_number is not None:
        stmt = stmt.where(PaymentTransaction.installment_number == installment_number)
    stmt = stmt.order_by(PaymentTransaction.created_at, PaymentTransaction.installment_number)
    result = await db.execute(stmt)
    return list(result.scalars().all())


def _records(transactions: List[PaymentTransaction]) -> List[TransactionRecord]:
    return [
        TransactionRecord(
            installment_number=tx.installment_number,
            amount=_to_decimal(tx.amount),
            verification_status=tx.verification_status,
        )
        for tx in transactions
    ]


def _load_schedule(sp: StudentPayment) -> Schedule:
    return Schedule.model_validate(sp.payment_schedule)


async def _refresh_snapshot(db: AsyncSession, sp: StudentPayment) -> PaymentBreakdown:
    """Re-derive the stored snapshot from the transaction log. Always bumps the row version."""
    transactions = await _list_transaction_rows(db, sp.id)
    breakdown = apply_transactions(_load_schedule(sp), _records(transactions))
    sp.payment_schedule = breakdown.schedule.model_dump(mode="json")
    sp.updated_at = _now()
    return breakdown


def _sp_to_response(sp: StudentPayment, breakdown: PaymentBreakdown) -> StudentPaymentResponse:
    return StudentPaymentResponse(
        id=sp.id,
        student_id=sp.student_id,
        cohort_id=sp.cohort_id,
        payment_plan=sp.payment_plan,
        start_date=sp.start_date,
        total_amount_payable=_to_decimal(sp.total_amount_payable),
        version_id=sp.version_id,
        breakdown=breakdown,
        updated_at=sp.updated_at,
    )


async def save_schedule(
    db: AsyncSession,
    student_id: UUID,
    cohort_id: UUID,
    schedule: Schedule,
    grant: ScholarshipGrant,
    changed_by: Optional[UUID] = None,
) -> StudentPayment:
    """Store a freshly generated schedule as the student's snapshot. Caller commits."""
    snapshot = schedule.model_dump(mode="json")
    sp = (
        await db.execute(select(StudentPayment).where(StudentPayment.student_id == student_id))
    ).scalar_one_or_none()
    old_value = None
    if sp:
        old_value = {"payment_plan": sp.payment_plan, "total_amount_payable": str(sp.total_amount_payable)}
        sp.cohort_id = cohort_id
        sp.payment_plan = schedule.plan.value
        sp.start_date = schedule.start_date
        sp.scholarship_percentage = grant.scholarship_percentage
        sp.additional_discount_percentage = grant.additional_discount_percentage
        sp.total_amount_payable = schedule.total_amount
        sp.payment_schedule = snapshot
        sp.updated_at = _now()
    else:
        sp = StudentPayment(
            student_id=student_id,
            cohort_id=cohort_id,
            payment_plan=schedule.plan.value,
            start_date=schedule.start_date,
            scholarship_percentage=grant.scholarship_percentage,
            additional_discount_percentage=grant.additional_discount_percentage,
            total_amount_payable=schedule.total_amount,
            payment_schedule=snapshot,
        )
        db.add(sp)
    await db.flush()
    await log_payment_audit(
        db, "student_payments", sp.id,
        "UPDATE" if old_value else "CREATE",
        old_value,
        {
            "payment_plan": schedule.plan.value,
            "total_amount_payable": str(schedule.total_amount),
            "installments": len(schedule.installments),
            "discount_percentage": str(schedule.discount_percentage),
        },
        changed_by,
    )
    return sp


async def generate_student_schedule(
    db: AsyncSession,
    student_id: UUID,
    payload: ScheduleGenerateRequest,
) -> StudentPaymentResponse:
    """Generate and store a student's schedule. Nothing is written if generation fails."""
    fs = await load_fee_structure(db, payload.cohort_id)
    grant = await get_scholarship_grant(db, student_id)
    schedule = generate_schedule(
        payload.payment_plan,
        fs,
        payload.start_date,
        scholarship_percentage=grant.scholarship_percentage,
        additional_discount_percentage=grant.additional_discount_percentage,
    )

    existing = (
        await db.execute(select(StudentPayment).where(StudentPayment.student_id == student_id))
    ).scalar_one_or_none()
    if existing:
        live = [
            tx for tx in await _list_transaction_rows(db, existing.id)
            if tx.verification_status != VerificationStatus.REJECTED.value
        ]
        if live:
            raise ServiceError(
                "Cannot regenerate schedule after payments have been recorded",
                status.HTTP_409_CONFLICT,
            )
    try:
        sp = await save_schedule(db, student_id, payload.cohort_id, schedule, grant, payload.changed_by)
        await db.commit()
    except (IntegrityError, StaleDataError):
        await db.rollback()
        raise ServiceError(CONCURRENT_UPDATE_MESSAGE, status.HTTP_409_CONFLICT)
    await db.refresh(sp)
    logger.info(
        "Saved %s schedule for student %s: %d installments, total %s",
        schedule.plan.value, student_id, len(schedule.installments), schedule.total_amount,
    )
    return _sp_to_response(sp, apply_transactions(schedule, []))


async def get_payment_breakdown(
    db: AsyncSession,
    student_id: UUID,
    today: Optional[date] = None,
) -> StudentPaymentResponse:
    """Reload the snapshot and derive current statuses from the transaction log."""
    sp = await _get_student_payment(db, student_id)
    transactions = await _list_transaction_rows(db, sp.id)
    breakdown = apply_transactions(_load_schedule(sp), _records(transactions), today=today)
    return _sp_to_response(sp, breakdown)


# --- Transactions ---
async def record_payment(
    db: AsyncSession,
    student_id: UUID,
    payload: PaymentCreate,
) -> TransactionResponse:
    sp = await _get_student_payment(db, student_id)
    schedule = _load_schedule(sp)
    inst = next(
        (i for i in schedule.payable_installments() if i.installment_number == payload.installment_number),
        None,
    )
    if inst is None:
        raise ServiceError("Installment not found in this student's schedule", status.HTTP_400_BAD_REQUEST)

    committed = sum(
        (
            _to_decimal(tx.amount)
            for tx in await _list_transaction_rows(db, sp.id, payload.installment_number)
            if tx.verification_status != VerificationStatus.REJECTED.value
        ),
        Decimal("0"),
    )
    balance = inst.amount - committed
    if payload.amount > balance:
        raise ServiceError("Payment amount cannot exceed remaining balance", status.HTTP_400_BAD_REQUEST)

    try:
        pt = PaymentTransaction(
            student_payment_id=sp.id,
            student_id=student_id,
            installment_number=inst.installment_number,
            semester_number=inst.semester_number,
            amount=payload.amount,
            payment_method=payload.payment_method.value,
            reference_number=(payload.reference_number or "").strip() or None,
            verification_status=VerificationStatus.VERIFICATION_PENDING.value,
            notes=(payload.notes or "").strip() or None,
            created_at=_now(),
        )
        db.add(pt)
        await db.flush()
        await _refresh_snapshot(db, sp)
        await log_payment_audit(
            db, "payment_transactions", pt.id,
            "CREATE",
            None,
            {
                "amount": str(payload.amount),
                "payment_method": pt.payment_method,
                "installment_number": pt.installment_number,
                "balance_before": str(balance),
            },
            None,
        )
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ServiceError(CONCURRENT_UPDATE_MESSAGE, status.HTTP_409_CONFLICT)
    await db.refresh(pt)
    logger.info(
        "Recorded payment %s of %s against installment %s for student %s",
        pt.id, payload.amount, pt.installment_number, student_id,
    )
    return TransactionResponse.model_validate(pt)


async def verify_transaction(
    db: AsyncSession,
    transaction_id: UUID,
    payload: VerifyTransactionRequest,
) -> TransactionResponse:
    """Approve or reject a payment awaiting verification."""
    pt = await db.get(PaymentTransaction, transaction_id)
    if not pt:
        raise ServiceError("Transaction not found", status.HTTP_404_NOT_FOUND)
    if pt.verification_status != VerificationStatus.VERIFICATION_PENDING.value:
        raise ServiceError(
            f"Transaction already {pt.verification_status}",
            status.HTTP_409_CONFLICT,
        )
    sp = await db.get(StudentPayment, pt.student_payment_id)
    old_status = pt.verification_status
    if payload.decision == VerificationDecision.APPROVE:
        pt.verification_status = VerificationStatus.APPROVED.value
        action = "APPROVE"
    else:
        pt.verification_status = VerificationStatus.REJECTED.value
        pt.rejection_reason = payload.rejection_reason.strip()
        action = "REJECT"
    pt.verified_by = payload.verified_by
    pt.verified_at = _now()
    try:
        await db.flush()
        await _refresh_snapshot(db, sp)
        await log_payment_audit(
            db, "payment_transactions", pt.id,
            action,
            {"verification_status": old_status},
            {"verification_status": pt.verification_status, "rejection_reason": pt.rejection_reason},
            payload.verified_by,
        )
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ServiceError(CONCURRENT_UPDATE_MESSAGE, status.HTTP_409_CONFLICT)
    await db.refresh(pt)
    logger.info("Payment %s %s by %s", pt.id, pt.verification_status, payload.verified_by)
    return TransactionResponse.model_validate(pt)


async def list_transactions(
    db: AsyncSession,
    student_id: UUID,
    installment_number: Optional[int] = None,
) -> List[TransactionResponse]:
    sp = await _get_student_payment(db, student_id)
    rows = await _list_transaction_rows(db, sp.id, installment_number)
    return [TransactionResponse.model_validate(pt) for pt in rows]

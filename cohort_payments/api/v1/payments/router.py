"""Payments router: discount and schedule previews, student schedules, transactions, verification."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_payments.calculator import DiscountComposition, Schedule, compose_discount
from cohort_payments.core.exceptions import ServiceError
from cohort_payments.db.session import get_db

from .schemas import (
    DiscountPreviewRequest,
    PaymentCreate,
    ScheduleGenerateRequest,
    SchedulePreviewRequest,
    StudentPaymentResponse,
    StudentScholarshipAssign,
    StudentScholarshipResponse,
    TransactionResponse,
    VerifyTransactionRequest,
)
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


# --- Previews ---
@router.post("/discount-preview", response_model=DiscountComposition)
async def preview_discount(payload: DiscountPreviewRequest) -> DiscountComposition:
    try:
        return compose_discount(payload.scholarship_percentage, payload.additional_discount_percentage)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/schedule-preview", response_model=Schedule)
async def preview_schedule(
    payload: SchedulePreviewRequest,
    db: AsyncSession = Depends(get_db),
) -> Schedule:
    try:
        return await service.preview_schedule(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Student scholarship ---
@router.put("/students/{student_id}/scholarship", response_model=StudentScholarshipResponse)
async def assign_student_scholarship(
    student_id: UUID,
    payload: StudentScholarshipAssign,
    db: AsyncSession = Depends(get_db),
) -> StudentScholarshipResponse:
    try:
        return await service.assign_student_scholarship(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Student schedule ---
@router.post(
    "/students/{student_id}/schedule",
    response_model=StudentPaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_student_schedule(
    student_id: UUID,
    payload: ScheduleGenerateRequest,
    db: AsyncSession = Depends(get_db),
) -> StudentPaymentResponse:
    try:
        return await service.generate_student_schedule(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}", response_model=StudentPaymentResponse)
async def get_payment_breakdown(
    student_id: UUID,
    as_of: Optional[date] = Query(None, description="Derive statuses as of this date (defaults to today)"),
    db: AsyncSession = Depends(get_db),
) -> StudentPaymentResponse:
    try:
        return await service.get_payment_breakdown(db, student_id, today=as_of)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Transactions ---
@router.post(
    "/students/{student_id}/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    student_id: UUID,
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    try:
        return await service.record_payment(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}/transactions", response_model=List[TransactionResponse])
async def list_transactions(
    student_id: UUID,
    installment_number: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
) -> List[TransactionResponse]:
    try:
        return await service.list_transactions(db, student_id, installment_number=installment_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/transactions/{transaction_id}/verify", response_model=TransactionResponse)
async def verify_transaction(
    transaction_id: UUID,
    payload: VerifyTransactionRequest,
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    try:
        return await service.verify_transaction(db, transaction_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

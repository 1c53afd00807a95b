"""Payments schemas: discount and schedule previews, student schedules, transactions."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from cohort_payments.calculator.schemas import PaymentBreakdown
from cohort_payments.core.enums import PaymentMethod, VerificationDecision, VerificationStatus


# --- Discount / scholarship ---
class DiscountPreviewRequest(BaseModel):
    # Range checked by compose_discount.
    scholarship_percentage: Decimal = Decimal("0")
    additional_discount_percentage: Decimal = Decimal("0")


class ScholarshipGrant(BaseModel):
    """Effective grant inputs for one student."""

    scholarship_id: Optional[UUID] = None
    scholarship_name: Optional[str] = None
    scholarship_percentage: Decimal = Decimal("0")
    additional_discount_percentage: Decimal = Decimal("0")


class StudentScholarshipAssign(BaseModel):
    cohort_id: UUID
    scholarship_id: Optional[UUID] = None
    additional_discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    description: Optional[str] = None
    assigned_by: Optional[UUID] = None


class StudentScholarshipResponse(ScholarshipGrant):
    student_id: UUID
    cohort_id: UUID
    total_percentage: Decimal
    warning: bool = False


# --- Schedule ---
class SchedulePreviewRequest(BaseModel):
    cohort_id: UUID
    payment_plan: str = Field(..., description="one_shot, sem_wise, instalment_wise")
    start_date: str = Field(..., description="YYYY-MM-DD or DD/MM/YYYY")
    scholarship_id: Optional[UUID] = None
    additional_discount_percentage: Decimal = Decimal("0")


class ScheduleGenerateRequest(BaseModel):
    cohort_id: UUID
    payment_plan: str = Field(..., description="one_shot, sem_wise, instalment_wise")
    start_date: str = Field(..., description="YYYY-MM-DD or DD/MM/YYYY")
    changed_by: Optional[UUID] = None


class StudentPaymentResponse(BaseModel):
    id: UUID
    student_id: UUID
    cohort_id: UUID
    payment_plan: str
    start_date: date
    total_amount_payable: Decimal
    version_id: int
    breakdown: PaymentBreakdown
    updated_at: datetime


# --- Transactions ---
class PaymentCreate(BaseModel):
    installment_number: int = Field(..., ge=0, description="0 settles the admission fee")
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: PaymentMethod
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class VerifyTransactionRequest(BaseModel):
    decision: VerificationDecision
    verified_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None

    @model_validator(mode="after")
    def validate_rejection_reason(self) -> "VerifyTransactionRequest":
        if self.decision == VerificationDecision.REJECT and not (self.rejection_reason or "").strip():
            raise ValueError("rejection_reason is required when rejecting a payment")
        return self


class TransactionResponse(BaseModel):
    id: UUID
    student_id: UUID
    installment_number: int
    semester_number: Optional[int] = None
    amount: Decimal
    payment_method: str
    reference_number: Optional[str] = None
    verification_status: VerificationStatus
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

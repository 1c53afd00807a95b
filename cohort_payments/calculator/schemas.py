"""Calculator value types. These are also the persisted schedule snapshot shape."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer

from cohort_payments.core.enums import PaymentPlan, PaymentStatus, VerificationStatus

from .money import CENT


def _money(value: Any) -> Any:
    # Snapshots store money as JSON numbers; go through str() so floats load exactly.
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    if isinstance(value, Decimal):
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]

Percent = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Installment(BaseModel):
    installment_number: int
    semester_number: Optional[int] = None
    due_date: date
    amount: Money
    status: PaymentStatus = PaymentStatus.PENDING
    amount_paid: Money = Decimal("0.00")
    amount_pending: Money


class ScheduleSummary(BaseModel):
    total_installments: int
    next_due_date: Optional[date] = None
    next_due_amount: Optional[Money] = None
    completion_percentage: Percent = Decimal("0")


class Schedule(BaseModel):
    plan: PaymentPlan
    total_amount: Money
    admission_fee: Money
    program_fee: Money
    installments: List[Installment]
    summary: ScheduleSummary
    admission_installment: Optional[Installment] = None
    start_date: Optional[date] = None
    discount_percentage: Percent = Decimal("0")
    discount_amount: Money = Decimal("0.00")
    discount_warning: bool = False
    one_shot_discount_amount: Money = Decimal("0.00")

    @property
    def separate_admission_fee(self) -> Decimal:
        """Admission fee payable outside the program installments (one-shot folds it in)."""
        if self.admission_installment is None:
            return Decimal("0.00")
        return self.admission_installment.amount

    def payable_installments(self) -> List[Installment]:
        """Everything a payment can be recorded against, admission entry first."""
        if self.admission_installment is None:
            return list(self.installments)
        return [self.admission_installment, *self.installments]


class TransactionRecord(BaseModel):
    """Minimal view of a payment transaction needed for reconciliation."""

    installment_number: int
    amount: Decimal
    verification_status: VerificationStatus


class InstallmentError(BaseModel):
    installment_number: int
    field: Optional[str] = None
    message: str


class PaymentBreakdown(BaseModel):
    schedule: Schedule
    aggregate_status: PaymentStatus
    aggregate_label: str
    total_paid: Money
    total_pending: Money
    errors: List[InstallmentError] = Field(default_factory=list)

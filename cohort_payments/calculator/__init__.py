from cohort_payments.calculator.discounts import DiscountComposition, compose_discount
from cohort_payments.calculator.reconcile import apply_transactions
from cohort_payments.calculator.schedule import generate_schedule
from cohort_payments.calculator.schemas import (
    Installment,
    InstallmentError,
    PaymentBreakdown,
    Schedule,
    ScheduleSummary,
    TransactionRecord,
)
from cohort_payments.calculator.status import (
    STATUS_PRIORITY,
    derive_aggregate_status,
    derive_installment_status,
)

__all__ = [
    "DiscountComposition",
    "Installment",
    "InstallmentError",
    "PaymentBreakdown",
    "STATUS_PRIORITY",
    "Schedule",
    "ScheduleSummary",
    "TransactionRecord",
    "apply_transactions",
    "compose_discount",
    "derive_aggregate_status",
    "derive_installment_status",
    "generate_schedule",
]

from enum import Enum


class PaymentPlan(str, Enum):
    ONE_SHOT = "one_shot"
    SEM_WISE = "sem_wise"
    INSTALMENT_WISE = "instalment_wise"
    NOT_SELECTED = "not_selected"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    PENDING_10_PLUS_DAYS = "pending_10_plus_days"
    PARTIALLY_PAID_DAYS_LEFT = "partially_paid_days_left"
    VERIFICATION_PENDING = "verification_pending"
    PARTIALLY_PAID_VERIFICATION_PENDING = "partially_paid_verification_pending"
    PARTIALLY_PAID_OVERDUE = "partially_paid_overdue"
    OVERDUE = "overdue"


class VerificationStatus(str, Enum):
    VERIFICATION_PENDING = "verification_pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CARD = "card"
    CHEQUE = "cheque"
    RAZORPAY = "razorpay"


class VerificationDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

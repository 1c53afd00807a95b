from cohort_payments.core.models.fee_structure import FeeStructure
from cohort_payments.core.models.cohort_scholarship import CohortScholarship
from cohort_payments.core.models.student_scholarship import StudentScholarship
from cohort_payments.core.models.student_payment import StudentPayment
from cohort_payments.core.models.payment_transaction import PaymentTransaction
from cohort_payments.core.models.payment_audit_log import PaymentAuditLog

__all__ = [
    "FeeStructure",
    "CohortScholarship",
    "StudentScholarship",
    "StudentPayment",
    "PaymentTransaction",
    "PaymentAuditLog",
]

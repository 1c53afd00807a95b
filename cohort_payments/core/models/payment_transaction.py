"""Payment transaction: append-only payment events against one installment."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cohort_payments.db.session import Base


class PaymentTransaction(Base):
    """Payment against one installment of a student's schedule. Supports partial payments."""

    __tablename__ = "payment_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_payment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("student_payments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    semester_number = Column(Integer, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(30), nullable=False)  # cash, bank_transfer, upi, card, cheque, razorpay
    reference_number = Column(String(100), nullable=True)
    verification_status = Column(String(30), nullable=False)  # verification_pending, approved, rejected
    verified_by = Column(UUID(as_uuid=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student_payment = relationship("StudentPayment", backref="transactions")

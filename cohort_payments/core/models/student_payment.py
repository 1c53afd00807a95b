"""Student payment record: chosen plan plus the cached schedule snapshot."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID

from cohort_payments.db.session import Base


class StudentPayment(Base):
    """
    One payment record per student.

    ``payment_schedule`` holds the generated schedule as JSON. ``version_id`` is
    bumped on every write so concurrent payments against the same student
    conflict instead of double counting.
    """

    __tablename__ = "student_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), nullable=False, unique=True, index=True)
    cohort_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    payment_plan = Column(String(30), nullable=False)  # one_shot, sem_wise, instalment_wise
    start_date = Column(Date, nullable=False)
    scholarship_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    additional_discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    total_amount_payable = Column(Numeric(12, 2), nullable=False)
    payment_schedule = Column(JSON, nullable=False)
    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

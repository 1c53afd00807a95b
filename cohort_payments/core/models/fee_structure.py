"""Fee structure: program and admission fees for a cohort. Immutable once set."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID

from cohort_payments.db.session import Base


class FeeStructure(Base):
    """One fee structure per cohort. Read by the schedule generator."""

    __tablename__ = "fee_structures"
    __table_args__ = (
        CheckConstraint("total_program_fee > 0", name="ck_fee_structure_program_fee_positive"),
        CheckConstraint("admission_fee >= 0", name="ck_fee_structure_admission_fee_non_negative"),
        CheckConstraint("number_of_semesters >= 1", name="ck_fee_structure_semesters"),
        CheckConstraint("instalments_per_semester >= 1", name="ck_fee_structure_instalments"),
        CheckConstraint(
            "one_shot_discount_percentage >= 0 AND one_shot_discount_percentage <= 100",
            name="ck_fee_structure_one_shot_discount",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(UUID(as_uuid=True), nullable=False, unique=True, index=True)
    total_program_fee = Column(Numeric(12, 2), nullable=False)
    admission_fee = Column(Numeric(12, 2), nullable=False, default=0)
    number_of_semesters = Column(Integer, nullable=False)
    instalments_per_semester = Column(Integer, nullable=False)
    one_shot_discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    # Per-plan due date overrides, used only when custom_dates_enabled is set.
    custom_dates_enabled = Column(Boolean, nullable=False, default=False)
    one_shot_dates = Column(JSON, nullable=True)  # {"program_fee_due_date": ...}
    sem_wise_dates = Column(JSON, nullable=True)  # {"admission_date": ..., "semesters": {"semester_1": {"due_date": ...}}}
    instalment_wise_dates = Column(JSON, nullable=True)  # {"semesters": {"semester_1": {"installments": {"installment_0": ...}}}}
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

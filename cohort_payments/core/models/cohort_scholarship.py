"""Cohort scholarship: a named percentage grant offered within a cohort."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from cohort_payments.db.session import Base


class CohortScholarship(Base):
    __tablename__ = "cohort_scholarships"
    __table_args__ = (
        UniqueConstraint("cohort_id", "name", name="uq_cohort_scholarship_cohort_name"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount_percentage = Column(Numeric(5, 2), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

"""Student scholarship: the grant a student holds plus any per-student extra discount."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cohort_payments.db.session import Base


class StudentScholarship(Base):
    """At most one grant per student. ``scholarship_id`` may be empty when only an extra discount applies."""

    __tablename__ = "student_scholarships"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), nullable=False, unique=True, index=True)
    cohort_id = Column(UUID(as_uuid=True), nullable=False)
    scholarship_id = Column(
        UUID(as_uuid=True),
        ForeignKey("cohort_scholarships.id", ondelete="RESTRICT"),
        nullable=True,
    )
    additional_discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    assigned_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    scholarship = relationship("CohortScholarship", lazy="joined")

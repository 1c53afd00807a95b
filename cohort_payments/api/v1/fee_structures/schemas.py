"""Fee structure and cohort scholarship schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class FeeStructureCreate(BaseModel):
    cohort_id: UUID
    total_program_fee: Decimal = Field(..., gt=0, decimal_places=2)
    admission_fee: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    number_of_semesters: int = Field(..., ge=1)
    instalments_per_semester: int = Field(..., ge=1)
    one_shot_discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    custom_dates_enabled: bool = False
    one_shot_dates: Optional[Dict[str, Any]] = None
    sem_wise_dates: Optional[Dict[str, Any]] = None
    instalment_wise_dates: Optional[Dict[str, Any]] = None
    created_by: Optional[UUID] = None


class FeeStructureResponse(BaseModel):
    id: UUID
    cohort_id: UUID
    total_program_fee: Decimal
    admission_fee: Decimal
    number_of_semesters: int
    instalments_per_semester: int
    one_shot_discount_percentage: Decimal = Decimal("0")
    custom_dates_enabled: bool = False
    one_shot_dates: Optional[Dict[str, Any]] = None
    sem_wise_dates: Optional[Dict[str, Any]] = None
    instalment_wise_dates: Optional[Dict[str, Any]] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CohortScholarshipCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount_percentage: Decimal = Field(..., ge=0, le=100)
    description: Optional[str] = None


class CohortScholarshipResponse(BaseModel):
    id: UUID
    cohort_id: UUID
    name: str
    amount_percentage: Decimal
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

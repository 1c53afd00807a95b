"""Fee structures router: cohort fee structure and scholarships."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_payments.core.exceptions import ServiceError
from cohort_payments.db.session import get_db

from .schemas import (
    CohortScholarshipCreate,
    CohortScholarshipResponse,
    FeeStructureCreate,
    FeeStructureResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fee-structures", tags=["fee-structures"])


@router.post(
    "",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee_structure(
    payload: FeeStructureCreate,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.create_fee_structure(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{cohort_id}", response_model=FeeStructureResponse)
async def get_fee_structure(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.get_fee_structure(db, cohort_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{cohort_id}/scholarships",
    response_model=CohortScholarshipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_cohort_scholarship(
    cohort_id: UUID,
    payload: CohortScholarshipCreate,
    db: AsyncSession = Depends(get_db),
) -> CohortScholarshipResponse:
    try:
        return await service.create_cohort_scholarship(db, cohort_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{cohort_id}/scholarships", response_model=List[CohortScholarshipResponse])
async def list_cohort_scholarships(
    cohort_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[CohortScholarshipResponse]:
    return await service.list_cohort_scholarships(db, cohort_id)

"""Fee structure service: cohort fee structures and the scholarships offered in them."""

import logging
from typing import List
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_payments.api.v1.audit import log_payment_audit
from cohort_payments.core.exceptions import ServiceError
from cohort_payments.core.models import CohortScholarship, FeeStructure

from .schemas import (
    CohortScholarshipCreate,
    CohortScholarshipResponse,
    FeeStructureCreate,
    FeeStructureResponse,
)

logger = logging.getLogger(__name__)


async def load_fee_structure(db: AsyncSession, cohort_id: UUID) -> FeeStructure:
    fs = (
        await db.execute(select(FeeStructure).where(FeeStructure.cohort_id == cohort_id))
    ).scalar_one_or_none()
    if not fs:
        raise ServiceError("Fee structure not set for this cohort", status.HTTP_404_NOT_FOUND)
    return fs


async def create_fee_structure(db: AsyncSession, payload: FeeStructureCreate) -> FeeStructureResponse:
    existing = (
        await db.execute(select(FeeStructure.id).where(FeeStructure.cohort_id == payload.cohort_id))
    ).scalar_one_or_none()
    if existing:
        raise ServiceError("Fee structure already set for this cohort", status.HTTP_409_CONFLICT)
    try:
        fs = FeeStructure(
            cohort_id=payload.cohort_id,
            total_program_fee=payload.total_program_fee,
            admission_fee=payload.admission_fee,
            number_of_semesters=payload.number_of_semesters,
            instalments_per_semester=payload.instalments_per_semester,
            one_shot_discount_percentage=payload.one_shot_discount_percentage,
            custom_dates_enabled=payload.custom_dates_enabled,
            one_shot_dates=payload.one_shot_dates,
            sem_wise_dates=payload.sem_wise_dates,
            instalment_wise_dates=payload.instalment_wise_dates,
            created_by=payload.created_by,
        )
        db.add(fs)
        await db.flush()
        await log_payment_audit(
            db, "fee_structures", fs.id, "CREATE", None,
            {
                "cohort_id": str(payload.cohort_id),
                "total_program_fee": str(payload.total_program_fee),
                "admission_fee": str(payload.admission_fee),
                "number_of_semesters": payload.number_of_semesters,
                "instalments_per_semester": payload.instalments_per_semester,
                "one_shot_discount_percentage": str(payload.one_shot_discount_percentage),
                "custom_dates_enabled": payload.custom_dates_enabled,
            },
            payload.created_by,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Fee structure already set for this cohort", status.HTTP_409_CONFLICT)
    await db.refresh(fs)
    logger.info("Fee structure %s created for cohort %s", fs.id, fs.cohort_id)
    return FeeStructureResponse.model_validate(fs)


async def get_fee_structure(db: AsyncSession, cohort_id: UUID) -> FeeStructureResponse:
    return FeeStructureResponse.model_validate(await load_fee_structure(db, cohort_id))


async def create_cohort_scholarship(
    db: AsyncSession,
    cohort_id: UUID,
    payload: CohortScholarshipCreate,
) -> CohortScholarshipResponse:
    try:
        sch = CohortScholarship(
            cohort_id=cohort_id,
            name=payload.name.strip(),
            amount_percentage=payload.amount_percentage,
            description=(payload.description or "").strip() or None,
        )
        db.add(sch)
        await db.flush()
        await log_payment_audit(
            db, "cohort_scholarships", sch.id, "CREATE", None,
            {"cohort_id": str(cohort_id), "name": sch.name, "amount_percentage": str(payload.amount_percentage)},
            None,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("A scholarship with this name already exists in the cohort", status.HTTP_409_CONFLICT)
    await db.refresh(sch)
    return CohortScholarshipResponse.model_validate(sch)


async def list_cohort_scholarships(db: AsyncSession, cohort_id: UUID) -> List[CohortScholarshipResponse]:
    stmt = (
        select(CohortScholarship)
        .where(CohortScholarship.cohort_id == cohort_id)
        .order_by(CohortScholarship.amount_percentage, CohortScholarship.name)
    )
    result = await db.execute(stmt)
    return [CohortScholarshipResponse.model_validate(s) for s in result.scalars().all()]

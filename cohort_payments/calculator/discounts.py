"""Scholarship and additional discount composition."""

import logging
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from cohort_payments.core.exceptions import ValidationError

from .money import HUNDRED, to_decimal

logger = logging.getLogger(__name__)

MAX_DISCOUNT_PERCENTAGE = HUNDRED


class DiscountComposition(BaseModel):
    """Effective discount after combining a base grant with a per-student extra."""

    base_percentage: Decimal
    additional_percentage: Decimal
    total_percentage: Decimal
    warning: bool = False


def _percentage(value: Any, field: str) -> Decimal:
    pct = to_decimal(value, field)
    if pct < 0 or pct > HUNDRED:
        raise ValidationError(field, value, "must be between 0 and 100")
    return pct


def compose_discount(base_percentage: Any, additional_percentage: Any = 0) -> DiscountComposition:
    """
    Combine the base scholarship percentage with the additional discount.

    The sum is clamped to 100. Clamping sets ``warning`` and is logged; the
    overflow is never dropped silently.
    """
    base = _percentage(base_percentage, "scholarship_percentage")
    additional = _percentage(additional_percentage, "additional_discount_percentage")
    total = base + additional
    warning = total > MAX_DISCOUNT_PERCENTAGE
    if warning:
        logger.warning(
            "Combined discount %s%% + %s%% exceeds %s%%; clamped",
            base,
            additional,
            MAX_DISCOUNT_PERCENTAGE,
        )
        total = MAX_DISCOUNT_PERCENTAGE
    return DiscountComposition(
        base_percentage=base,
        additional_percentage=additional,
        total_percentage=total,
        warning=warning,
    )

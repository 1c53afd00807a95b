"""Fixed-point money and calendar-date helpers shared by the calculator.

All arithmetic happens on integer cents. Values cross the module boundary as
``Decimal`` quantized to two places, the same precision as the
``Numeric(12, 2)`` columns they are stored in.
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

from cohort_payments.core.exceptions import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

_DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

DateLike = Union[date, datetime, str]


def to_decimal(value: Any, field: str) -> Decimal:
    """Strictly convert a number to Decimal. Booleans, None and junk strings are rejected."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(field, value, "must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(field, value, "must be a number")
    else:
        raise ValidationError(field, value, "must be a number")
    if not result.is_finite():
        raise ValidationError(field, value, "must be a finite number")
    return result


def whole_cents(value: Any, field: str) -> int:
    """Like ``to_cents`` but rejects amounts with more than two decimal places."""
    amount = to_decimal(value, field)
    if amount != amount.quantize(CENT):
        raise ValidationError(field, value, "must not have more than 2 decimal places")
    return to_cents(amount, field)


def to_cents(value: Any, field: str) -> int:
    """Convert a money amount to integer cents, rounding half up."""
    amount = to_decimal(value, field)
    return int((amount * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / HUNDRED).quantize(CENT)


def percentage_of(cents: int, percentage: Decimal) -> int:
    """``cents * percentage / 100`` rounded half up to a whole cent."""
    return int((Decimal(cents) * percentage / HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_evenly(cents: int, parts: int) -> list:
    """Split ``cents`` into ``parts`` amounts; the remainder goes to the last part."""
    base, remainder = divmod(cents, parts)
    amounts = [base] * parts
    amounts[-1] += remainder
    return amounts


def parse_calendar_date(value: DateLike, field: str = "due_date") -> date:
    """
    Normalize a date-like to a calendar date, dropping any time component.

    Accepts ``date``, ``datetime``, ISO ``YYYY-MM-DD`` (optionally followed by a
    time part) and ``DD/MM/YYYY``. No timezone conversion is applied.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        match = _DMY_RE.match(text)
        try:
            if match:
                day, month, year = (int(part) for part in match.groups())
                return date(year, month, day)
            return date.fromisoformat(text[:10])
        except ValueError:
            raise ValidationError(field, value, "not a calendar date")
    raise ValidationError(field, value, "not a calendar date")

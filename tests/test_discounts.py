"""Unit tests for scholarship + additional discount composition."""

from decimal import Decimal

import pytest

from cohort_payments.calculator import compose_discount
from cohort_payments.core.exceptions import ValidationError


def test_sum_over_100_is_clamped_with_warning() -> None:
    result = compose_discount(70, 50)
    assert result.total_percentage == Decimal("100")
    assert result.warning is True


def test_sum_under_100_passes_through() -> None:
    result = compose_discount(10, 5)
    assert result.total_percentage == Decimal("15")
    assert result.warning is False


def test_equal_halves_over_limit() -> None:
    result = compose_discount(60, 60)
    assert result.total_percentage == Decimal("100")
    assert result.warning is True
    # Inputs are reported unchanged
    assert result.base_percentage == Decimal("60")
    assert result.additional_percentage == Decimal("60")


def test_exactly_100_is_not_a_warning() -> None:
    result = compose_discount(40, 60)
    assert result.total_percentage == Decimal("100")
    assert result.warning is False


def test_additional_defaults_to_zero() -> None:
    result = compose_discount("12.5")
    assert result.total_percentage == Decimal("12.5")


def test_clamp_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="cohort_payments.calculator.discounts"):
        compose_discount(90, 20)
    assert any("clamped" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    "base, additional, field",
    [
        (-1, 0, "scholarship_percentage"),
        (101, 0, "scholarship_percentage"),
        (10, -5, "additional_discount_percentage"),
        (10, 150, "additional_discount_percentage"),
        ("abc", 0, "scholarship_percentage"),
        (None, 0, "scholarship_percentage"),
    ],
)
def test_out_of_range_percentage_rejected(base, additional, field) -> None:
    with pytest.raises(ValidationError) as exc_info:
        compose_discount(base, additional)
    assert exc_info.value.field == field

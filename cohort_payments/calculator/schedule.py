"""
Payment schedule generation from a cohort fee structure.

Amounts are computed in integer cents. When the program fee does not divide
evenly across installments the leftover cents are carried onto the final
installment, so installments plus the admission entry always add up to the
total payable.
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from cohort_payments.core.enums import PaymentPlan, PaymentStatus
from cohort_payments.core.exceptions import ArithmeticConsistencyError, ConfigurationError, ValidationError

from .discounts import compose_discount
from .money import (
    CENT,
    HUNDRED,
    DateLike,
    from_cents,
    parse_calendar_date,
    percentage_of,
    split_evenly,
    to_cents,
    to_decimal,
    whole_cents,
)
from .schemas import Installment, Schedule, ScheduleSummary

MONTHS_PER_SEMESTER = 6

# Installment number payments use to settle the admission fee of sem_wise/instalment_wise plans.
ADMISSION_INSTALLMENT_NUMBER = 0

_FEE_FIELDS = ("total_program_fee", "admission_fee", "number_of_semesters", "instalments_per_semester")

_PLAN_DATES_FIELD = {
    PaymentPlan.ONE_SHOT: "one_shot_dates",
    PaymentPlan.SEM_WISE: "sem_wise_dates",
    PaymentPlan.INSTALMENT_WISE: "instalment_wise_dates",
}


def _optional_fee_field(fee_structure: Any, name: str, default: Any = None) -> Any:
    if isinstance(fee_structure, Mapping):
        value = fee_structure.get(name)
    else:
        value = getattr(fee_structure, name, None)
    return default if value is None else value


def _fee_field(fee_structure: Any, name: str) -> Any:
    value = _optional_fee_field(fee_structure, name)
    if value is None:
        raise ValidationError(name, None, "required")
    return value


def _positive_int(value: Any, field: str) -> int:
    number = to_decimal(value, field)
    if number != number.to_integral_value():
        raise ValidationError(field, value, "must be a whole number")
    if number < 1:
        raise ValidationError(field, value, "must be at least 1")
    return int(number)


def _resolve_plan(plan: Any) -> PaymentPlan:
    try:
        resolved = PaymentPlan(plan)
    except ValueError:
        raise ConfigurationError(f"Unknown payment plan: {plan!r}")
    if resolved == PaymentPlan.NOT_SELECTED:
        raise ConfigurationError("A payment plan must be selected before generating a schedule")
    return resolved


def validate_fee_structure(fee_structure: Any) -> dict:
    """Check fee structure fields and return them as cents / ints."""
    if fee_structure is None:
        raise ValidationError("fee_structure", None, "required")
    values = {name: _fee_field(fee_structure, name) for name in _FEE_FIELDS}

    total_program_fee = whole_cents(values["total_program_fee"], "total_program_fee")
    if total_program_fee <= 0:
        raise ValidationError("total_program_fee", values["total_program_fee"], "must be greater than 0")
    admission_fee = whole_cents(values["admission_fee"], "admission_fee")
    if admission_fee < 0:
        raise ValidationError("admission_fee", values["admission_fee"], "cannot be negative")

    raw_one_shot = _optional_fee_field(fee_structure, "one_shot_discount_percentage", 0)
    one_shot_discount = to_decimal(raw_one_shot, "one_shot_discount_percentage")
    if one_shot_discount < 0 or one_shot_discount > HUNDRED:
        raise ValidationError("one_shot_discount_percentage", raw_one_shot, "must be between 0 and 100")

    custom_dates = {}
    if _optional_fee_field(fee_structure, "custom_dates_enabled", False):
        for plan, field in _PLAN_DATES_FIELD.items():
            dates = _optional_fee_field(fee_structure, field, {})
            if not isinstance(dates, Mapping):
                raise ValidationError(field, dates, "must be an object")
            custom_dates[plan] = dates

    return {
        "total_program_fee": total_program_fee,
        "admission_fee": admission_fee,
        "number_of_semesters": _positive_int(values["number_of_semesters"], "number_of_semesters"),
        "instalments_per_semester": _positive_int(values["instalments_per_semester"], "instalments_per_semester"),
        "one_shot_discount_percentage": one_shot_discount,
        "custom_dates": custom_dates,
    }


def add_months(start: date, months: int) -> date:
    """Calendar-month offset from ``start``; missing days clamp to the month end."""
    return start + relativedelta(months=months)


def _custom_date(dates: Mapping, path: Sequence[str], field: str) -> Optional[date]:
    """Walk ``path`` into a plan dates object. Missing keys mean no override."""
    node: Any = dates
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    if node in (None, ""):
        return None
    return parse_calendar_date(node, field)


class _DueDates:
    """Computed due dates, overridden per slot by the fee structure's custom dates."""

    def __init__(self, start: date, dates: Optional[Mapping], field: str) -> None:
        self.start = start
        self.dates = dates
        self.field = field

    def _override(self, path: Sequence[str], default: date) -> date:
        if self.dates is None:
            return default
        return _custom_date(self.dates, path, f"{self.field}.{'.'.join(path)}") or default

    def admission(self) -> date:
        return self._override(("admission_date",), self.start)

    def one_shot(self) -> date:
        return self._override(("program_fee_due_date",), self.start)

    def semester(self, semester: int) -> date:
        default = add_months(self.start, MONTHS_PER_SEMESTER * (semester - 1))
        return self._override(("semesters", f"semester_{semester}", "due_date"), default)

    def instalment(self, index: int, semester: int, slot: int) -> date:
        default = add_months(self.start, index)
        path = ("semesters", f"semester_{semester}", "installments", f"installment_{slot}")
        return self._override(path, default)


def build_summary(
    installments: Sequence[Installment],
    total_amount: Decimal,
    admission_installment: Optional[Installment] = None,
) -> ScheduleSummary:
    payable = list(installments)
    if admission_installment is not None:
        payable.insert(0, admission_installment)
    next_due = next((inst for inst in payable if inst.status != PaymentStatus.PAID), None)
    paid_total = sum((inst.amount_paid for inst in payable), Decimal("0"))
    completion = Decimal("0")
    if total_amount > 0 and paid_total > 0:
        completion = (paid_total / total_amount * HUNDRED).quantize(CENT)
    return ScheduleSummary(
        total_installments=len(installments),
        next_due_date=next_due.due_date if next_due else None,
        next_due_amount=next_due.amount_pending if next_due else None,
        completion_percentage=completion,
    )


def check_reconciliation(schedule: Schedule) -> None:
    """Raise if installments plus the admission entry miss the total."""
    installment_total = sum(to_cents(inst.amount, "amount") for inst in schedule.installments)
    expected = to_cents(schedule.total_amount, "total_amount")
    outside = to_cents(schedule.separate_admission_fee, "admission_fee")
    if installment_total + outside != expected:
        raise ArithmeticConsistencyError(
            f"Installments ({from_cents(installment_total)}) + admission fee ({from_cents(outside)}) "
            f"do not reconcile to total amount ({from_cents(expected)})"
        )


def _installment(number: int, semester: Optional[int], due: date, cents: int) -> Installment:
    amount = from_cents(cents)
    return Installment(
        installment_number=number,
        semester_number=semester,
        due_date=due,
        amount=amount,
        status=PaymentStatus.PENDING,
        amount_paid=Decimal("0.00"),
        amount_pending=amount,
    )


def generate_schedule(
    plan: Any,
    fee_structure: Any,
    start_date: DateLike,
    scholarship_percentage: Any = 0,
    additional_discount_percentage: Any = 0,
) -> Schedule:
    """
    Build the installment schedule for one student.

    The one-shot plan folds the admission fee into its single installment and
    takes the fee structure's one-shot discount off the program fee. The other
    plans carry the admission fee as installment 0, due at the start date.

    Raises ``ConfigurationError`` for ``not_selected``/unknown plans and
    ``ValidationError`` for bad fee structure fields, dates or percentages.
    """
    resolved_plan = _resolve_plan(plan)
    fees = validate_fee_structure(fee_structure)
    start = parse_calendar_date(start_date, "start_date")
    discount = compose_discount(scholarship_percentage, additional_discount_percentage)
    due = _DueDates(start, fees["custom_dates"].get(resolved_plan), _PLAN_DATES_FIELD[resolved_plan])

    discount_cents = percentage_of(fees["total_program_fee"], discount.total_percentage)
    final_program_fee = fees["total_program_fee"] - discount_cents
    one_shot_cents = 0
    if resolved_plan == PaymentPlan.ONE_SHOT:
        one_shot_cents = percentage_of(final_program_fee, fees["one_shot_discount_percentage"])
        final_program_fee -= one_shot_cents
    total_amount = fees["admission_fee"] + final_program_fee

    semesters = fees["number_of_semesters"]
    per_semester = fees["instalments_per_semester"]
    installments: List[Installment] = []
    admission_installment = None
    if resolved_plan == PaymentPlan.ONE_SHOT:
        installments.append(_installment(1, 1, due.one_shot(), total_amount))
    else:
        if fees["admission_fee"] > 0:
            admission_installment = _installment(
                ADMISSION_INSTALLMENT_NUMBER, None, due.admission(), fees["admission_fee"]
            )
        if resolved_plan == PaymentPlan.SEM_WISE:
            for i, cents in enumerate(split_evenly(final_program_fee, semesters)):
                installments.append(_installment(i + 1, i + 1, due.semester(i + 1), cents))
        else:
            for i, cents in enumerate(split_evenly(final_program_fee, semesters * per_semester)):
                semester, slot = divmod(i, per_semester)
                installments.append(_installment(i + 1, semester + 1, due.instalment(i, semester + 1, slot), cents))

    total = from_cents(total_amount)
    schedule = Schedule(
        plan=resolved_plan,
        total_amount=total,
        admission_fee=from_cents(fees["admission_fee"]),
        program_fee=from_cents(final_program_fee),
        installments=installments,
        summary=build_summary(installments, total, admission_installment),
        admission_installment=admission_installment,
        start_date=start,
        discount_percentage=discount.total_percentage,
        discount_amount=from_cents(discount_cents),
        discount_warning=discount.warning,
        one_shot_discount_amount=from_cents(one_shot_cents),
    )
    check_reconciliation(schedule)
    return schedule

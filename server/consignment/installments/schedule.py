from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from consignment.models import PLAN_ACTIVE, PLAN_COMPLETED, PLAN_FREQUENCIES
from consignment.utils import add_months

DAY_STEPS = {"weekly": 7, "biweekly": 14}
MONTH_STEPS = {"monthly": 1, "quarterly": 3}


@dataclass(frozen=True)
class ScheduleAdvance:
    remaining_amount: Decimal
    status: str
    next_due_date: date

    @property
    def completed(self) -> bool:
        return self.status == PLAN_COMPLETED


def validate_frequency(frequency: str) -> None:
    if frequency not in PLAN_FREQUENCIES:
        raise ValueError(f"Unsupported installment frequency: {frequency}")


def next_due_date(current: date, frequency: str) -> date:
    validate_frequency(frequency)
    if frequency in DAY_STEPS:
        return current + timedelta(days=DAY_STEPS[frequency])
    return add_months(current, MONTH_STEPS[frequency])


def advance_schedule(remaining_amount: Decimal, applied_amount: Decimal, due_date: date, frequency: str) -> ScheduleAdvance:
    """Apply one payment to an active obligation.

    The obligation completes once nothing remains; otherwise the due date
    rolls forward one period and the plan stays active.
    """
    if applied_amount <= 0:
        raise ValueError("Installment payment must be greater than zero.")
    left = Decimal(remaining_amount) - Decimal(applied_amount)
    if left <= 0:
        return ScheduleAdvance(remaining_amount=Decimal("0.00"), status=PLAN_COMPLETED, next_due_date=due_date)
    return ScheduleAdvance(
        remaining_amount=left,
        status=PLAN_ACTIVE,
        next_due_date=next_due_date(due_date, frequency),
    )

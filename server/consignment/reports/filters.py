"""Report filters and date ranges shared by every ledger query.

A ``DateRange`` always covers whole calendar days: the lower bound is
midnight of the start date and the upper bound is the last microsecond of
the end date, whatever time of day the caller supplied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from consignment.errors import ValidationError
from consignment.models import ClientPayment, Expense, Item
from consignment.utils import as_date, end_of_day, start_of_day, utcnow

DEFAULT_RANGE_DAYS = 30


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self):
        object.__setattr__(self, "start", as_date(self.start))
        object.__setattr__(self, "end", as_date(self.end))
        if self.start > self.end:
            raise ValidationError("Start date must be on or before end date.")

    @property
    def bounds(self) -> Tuple[datetime, datetime]:
        return start_of_day(self.start), end_of_day(self.end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def previous(self) -> "DateRange":
        """The range of equal length ending the day before this one starts."""
        return DateRange(
            start=self.start - timedelta(days=self.days),
            end=self.start - timedelta(days=1),
        )

    def column_conditions(self, column) -> List:
        lower, upper = self.bounds
        return [column >= lower, column <= upper]


def resolve_date_range(
    start_date: Optional[date],
    end_date: Optional[date],
    today: Optional[date] = None,
) -> DateRange:
    end = end_date or today or utcnow().date()
    start = start_date or (end - timedelta(days=DEFAULT_RANGE_DAYS - 1))
    return DateRange(start=start, end=end)


def trailing_range(now: datetime, days: int) -> DateRange:
    """The ``days`` whole calendar days ending on the day of ``now``."""
    end = as_date(now)
    return DateRange(start=end - timedelta(days=days - 1), end=end)


def _normalize_ids(values: Optional[Iterable[int]]) -> Tuple[int, ...]:
    if not values:
        return ()
    return tuple(sorted({int(value) for value in values}))


@dataclass(frozen=True)
class ReportFilters:
    vendor_ids: Tuple[int, ...] = field(default_factory=tuple)
    brand_ids: Tuple[int, ...] = field(default_factory=tuple)
    category_ids: Tuple[int, ...] = field(default_factory=tuple)
    client_ids: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        for name in ("vendor_ids", "brand_ids", "category_ids", "client_ids"):
            object.__setattr__(self, name, _normalize_ids(getattr(self, name)))

    @classmethod
    def build(
        cls,
        vendor_ids: Optional[Sequence[int]] = None,
        brand_ids: Optional[Sequence[int]] = None,
        category_ids: Optional[Sequence[int]] = None,
        client_ids: Optional[Sequence[int]] = None,
    ) -> "ReportFilters":
        return cls(
            vendor_ids=vendor_ids or (),
            brand_ids=brand_ids or (),
            category_ids=category_ids or (),
            client_ids=client_ids or (),
        )

    @property
    def has_item_filters(self) -> bool:
        return bool(self.vendor_ids or self.brand_ids or self.category_ids)

    def item_conditions(self) -> List:
        conditions = []
        if self.vendor_ids:
            conditions.append(Item.vendor_id.in_(self.vendor_ids))
        if self.brand_ids:
            conditions.append(Item.brand_id.in_(self.brand_ids))
        if self.category_ids:
            conditions.append(Item.category_id.in_(self.category_ids))
        return conditions

    def payment_conditions(self, date_range: DateRange) -> List:
        conditions = date_range.column_conditions(ClientPayment.paid_at)
        conditions.extend(self.item_conditions())
        if self.client_ids:
            conditions.append(ClientPayment.client_id.in_(self.client_ids))
        return conditions

    def expense_conditions(self, date_range: DateRange) -> List:
        # Item-less expenses drop out once an item filter applies.
        conditions = date_range.column_conditions(Expense.incurred_at)
        conditions.extend(self.item_conditions())
        return conditions


NO_FILTERS = ReportFilters()

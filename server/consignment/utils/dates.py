import calendar
from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the ledger columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day(value: date | datetime) -> datetime:
    return datetime.combine(as_date(value), time.min)


def end_of_day(value: date | datetime) -> datetime:
    return datetime.combine(as_date(value), time.max)


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def week_start(value: date) -> date:
    # Weeks start on Sunday.
    return value - timedelta(days=(value.weekday() + 1) % 7)

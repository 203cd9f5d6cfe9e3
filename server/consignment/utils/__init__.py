from .dates import add_months, as_date, end_of_day, start_of_day, utcnow, week_start
from .money import ZERO, quantize_money, safe_div, to_decimal

__all__ = [
    "ZERO",
    "add_months",
    "as_date",
    "end_of_day",
    "quantize_money",
    "safe_div",
    "start_of_day",
    "to_decimal",
    "utcnow",
    "week_start",
]

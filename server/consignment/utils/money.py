from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")


def quantize_money(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def safe_div(num, denom):
    """Divide, returning zero when the denominator is zero or missing."""
    if not denom:
        return ZERO if isinstance(num, Decimal) else 0.0
    return num / denom

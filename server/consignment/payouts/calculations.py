from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from consignment.utils import quantize_money

HUNDRED = Decimal("100")
ADJUSTMENT_RATE = Decimal("0.01")


@dataclass(frozen=True)
class SettlementInput:
    max_sales_price: Decimal
    actual_sale_price: Decimal
    max_cost: Decimal
    total_paid: Decimal


@dataclass(frozen=True)
class Settlement:
    price_difference: Decimal
    discount_percent: Decimal
    adjustment_factor: Decimal
    vendor_target: Decimal
    total_paid: Decimal
    remaining_balance: Decimal
    payment_progress: Decimal

    @property
    def is_fully_paid(self) -> bool:
        return self.payment_progress >= HUNDRED


def _decimal(value: Optional[Decimal]) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def calculate_settlement(data: SettlementInput) -> Settlement:
    # Each percentage point of discount off the max listing price takes 1% off
    # max cost. A sale above the max price pushes the factor above 1.
    max_sales_price = _decimal(data.max_sales_price)
    max_cost = _decimal(data.max_cost)
    total_paid = _decimal(data.total_paid)

    price_difference = max_sales_price - _decimal(data.actual_sale_price)
    if max_sales_price > 0:
        discount_percent = price_difference / max_sales_price * HUNDRED
    else:
        discount_percent = Decimal("0")
    adjustment_factor = 1 - discount_percent * ADJUSTMENT_RATE
    vendor_target = quantize_money(adjustment_factor * max_cost)

    remaining_balance = max(Decimal("0"), vendor_target - total_paid)
    if vendor_target > 0:
        payment_progress = total_paid / vendor_target * HUNDRED
    else:
        payment_progress = Decimal("0")

    return Settlement(
        price_difference=price_difference,
        discount_percent=discount_percent,
        adjustment_factor=adjustment_factor,
        vendor_target=vendor_target,
        total_paid=total_paid,
        remaining_balance=remaining_balance,
        payment_progress=payment_progress,
    )


def validate_payout_amount(amount: Decimal) -> None:
    if amount is None or Decimal(amount) <= 0:
        raise ValueError("Payout amount must be greater than zero.")

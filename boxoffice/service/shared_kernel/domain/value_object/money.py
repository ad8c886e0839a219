from decimal import ROUND_HALF_UP, Decimal
from typing import Any


CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


def to_money(value: Any) -> Decimal:
    """Round to centavos, half up, the way the provider rounds."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Any, percent: Any) -> Decimal:
    return to_money(Decimal(str(amount)) * Decimal(str(percent)) / HUNDRED)

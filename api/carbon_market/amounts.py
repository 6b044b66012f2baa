"""Fixed-point helpers for currency and credit amounts."""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_amount(value) -> Decimal:
    """Quantize to two decimal places; floats go through str to avoid binary drift."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

"""
Fixed-point money helpers.

All amounts are Decimal quantized to cents. Floats never enter
the engine: values coming from the store or from JSON are
converted through str() first.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def split_evenly(total: Decimal, parts: int) -> list[Decimal]:
    """
    Split total into `parts` cent amounts that add up exactly.

    Each share is total/parts rounded down to the cent; the last
    share absorbs the remainder (100 / 3 -> 33.33, 33.33, 33.34).
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")
    total = money(total)
    share = (total / parts).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * (parts - 1)
    shares.append(total - share * (parts - 1))
    return shares

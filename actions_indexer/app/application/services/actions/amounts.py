from __future__ import annotations

from decimal import Decimal


def fractional(amount: int, decimals: int) -> str:
    """
    Scale a raw integer token amount by 10^-decimals.

    The Decimal is built from its digit tuple, so no context precision or
    rounding is involved; uint256 amounts stay exact.

        >>> fractional(123456, 4)
        '12.3456'
        >>> fractional(1, 18)
        '0.000000000000000001'
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    amount = int(amount)
    sign = 1 if amount < 0 else 0
    digits = tuple(int(d) for d in str(abs(amount)))

    value = format(Decimal((sign, digits, -decimals)), "f")

    if "." in value:
        value = value.rstrip("0").rstrip(".")
    if value in ("-0", ""):
        value = "0"
    return value

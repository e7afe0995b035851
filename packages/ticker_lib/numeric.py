# packages/ticker_lib/numeric.py

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, Optional

from packages.ticker_lib.errors import PriceUnavailableError


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Decimal rounding with ties away from zero (2.675 -> 2.68).
    Unlike round(), the float is rounded on its shortest decimal repr.
    """
    if value is None or not math.isfinite(value):
        return value

    with localcontext() as ctx:
        ctx.prec = 60
        quantum = Decimal(1).scaleb(-decimals)
        rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def nice_round(value: Optional[float], significant_digits: int = 4) -> Optional[float]:
    """
    Rounds to a human-friendly number of significant digits.
    The integer part is never truncated: 123456.7 -> 123457, 0.000123456 -> 0.0001235.
    """
    if value is None or not math.isfinite(value) or value == 0:
        return value

    magnitude = math.floor(math.log10(abs(value)))
    decimals = max(0, significant_digits - 1 - magnitude)
    return round_half_up(value, decimals)


def median_of_3(a: float, b: float, c: float) -> float:
    return sorted((a, b, c))[1]


def reconcile_mean(
    values: Iterable[Optional[float]], decimals: int, group: str
) -> float:
    """
    Mean of the non-null samples, rounded.
    An empty sample is an explicit failure, never NaN or 0.
    """
    samples = [v for v in values if v is not None]
    if not samples:
        raise PriceUnavailableError(group)
    return round_half_up(sum(samples) / len(samples), decimals)

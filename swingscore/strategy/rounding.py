"""Single rounding rule for every reported number: half away from zero."""

import math
from decimal import ROUND_HALF_UP, Decimal


def round_half_away(value: float, places: int = 2) -> float:
    """Round *value* to *places* decimals, ties away from zero.

    ``round()`` uses banker's rounding and binary floats (``round(2.675, 2)``
    gives 2.67), so fixtures would differ across implementations.  The value
    goes through its shortest ``repr`` first, which keeps ``2.675`` as
    written and rounds it to ``2.68``.

    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))

"""Process-wide table of inverse double factorials 1/(2n+1)!!.

The table covers every order supported by the plain and the modified
spherical Bessel families. It is built once at import and is read-only
afterwards, so lookups need no synchronisation.
"""

from __future__ import annotations

import numpy as np

from . import checks
from .order_limits import LOWER_LIMIT_OF_ORDER, UPPER_LIMIT_OF_ORDER


def _build_table(upper: int) -> np.ndarray:
    table = np.empty(upper + 1, dtype=np.float64)
    table[0] = 1.0
    for j in range(1, upper + 1):
        table[j] = table[j - 1] / (2 * j + 1)
    if table[upper] == 0.0:
        raise AssertionError("inverse double factorial underflowed")
    table.setflags(write=False)
    return table


_INV_DOUBLE_FACTORIALS = _build_table(UPPER_LIMIT_OF_ORDER)


def inverse_double_factorial(order: int) -> float:
    """Return 1/(2*order+1)!! for a supported order."""
    n = checks.check_order(order, LOWER_LIMIT_OF_ORDER, UPPER_LIMIT_OF_ORDER, "double_factorial.order")
    return float(_INV_DOUBLE_FACTORIALS[n])


def inverse_double_factorial_table() -> np.ndarray:
    return _INV_DOUBLE_FACTORIALS


__all__ = [
    "inverse_double_factorial",
    "inverse_double_factorial_table",
]

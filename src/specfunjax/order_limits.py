from __future__ import annotations

SBESSEL_LOWER_LIMIT_OF_ORDER = 0
SBESSEL_UPPER_LIMIT_OF_ORDER = 100

MSBESSEL_LOWER_LIMIT_OF_ORDER = 0
MSBESSEL_UPPER_LIMIT_OF_ORDER = 100

# Union of both families; sizes the shared coefficient table.
LOWER_LIMIT_OF_ORDER = min(SBESSEL_LOWER_LIMIT_OF_ORDER, MSBESSEL_LOWER_LIMIT_OF_ORDER)
UPPER_LIMIT_OF_ORDER = max(SBESSEL_UPPER_LIMIT_OF_ORDER, MSBESSEL_UPPER_LIMIT_OF_ORDER)


__all__ = [
    "SBESSEL_LOWER_LIMIT_OF_ORDER",
    "SBESSEL_UPPER_LIMIT_OF_ORDER",
    "MSBESSEL_LOWER_LIMIT_OF_ORDER",
    "MSBESSEL_UPPER_LIMIT_OF_ORDER",
    "LOWER_LIMIT_OF_ORDER",
    "UPPER_LIMIT_OF_ORDER",
]

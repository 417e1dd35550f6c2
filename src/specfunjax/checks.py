from __future__ import annotations

import operator


def check_integral(val, label: str) -> int:
    if isinstance(val, bool):
        raise TypeError(f"{label}: expected an integer, got bool")
    try:
        return operator.index(val)
    except TypeError:
        raise TypeError(f"{label}: expected an integer, got {type(val).__name__}") from None


def check_order(order, lower: int, upper: int, label: str) -> int:
    n = check_integral(order, label)
    if not (lower <= n <= upper):
        raise ValueError(f"{label}: order out of supported range [{lower}, {upper}], got {n}")
    return n


def check_in_set(val: str, allowed: tuple[str, ...], label: str) -> str:
    if val not in allowed:
        raise ValueError(f"{label}: expected one of {allowed}, got {val!r}")
    return val


__all__ = ["check_integral", "check_order", "check_in_set"]

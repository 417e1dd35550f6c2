"""Spherical Bessel functions j_n(x), y_n(x) of integer order 0 <= n <= 100.

Orders 0 and 1 use closed trigonometric forms. For n >= 2, j_n is evaluated
by a power series (x < 2), Miller's backward recurrence (2 <= x < n) or the
forward recurrence (x >= n); y_n always uses the forward recurrence, since it
is the dominant solution for every x.
"""

from __future__ import annotations

from functools import partial
import math

import jax
from jax import lax
import jax.numpy as jnp

from . import checks
from . import double_factorial as dfac
from . import recurrence
from . import series
from .order_limits import SBESSEL_LOWER_LIMIT_OF_ORDER, SBESSEL_UPPER_LIMIT_OF_ORDER

jax.config.update("jax_enable_x64", True)

LOWER_LIMIT_OF_ORDER = SBESSEL_LOWER_LIMIT_OF_ORDER
UPPER_LIMIT_OF_ORDER = SBESSEL_UPPER_LIMIT_OF_ORDER

# Below this x, j_0(x) is 1 to double precision.
_TINY_X = 1e-100
# j_n: power series below, backward recurrence (n >= 2) or trigonometry (n = 1) above.
_POWER_BOUNDARY_X = 2.0
_K_MAX_POWER = 10
_KINDS = ("j", "y")


def _as_real(x) -> jax.Array:
    return jnp.asarray(x, dtype=jnp.float64)


def _domain(x: jax.Array, val: jax.Array) -> jax.Array:
    # NaN for x < 0 and for NaN input
    return jnp.where(x >= 0.0, val, jnp.nan)


@jax.jit
def sbessel_j0(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    s = jnp.sin(x)
    val = jnp.where(jnp.isfinite(s), s / x, 0.0)
    val = jnp.where(x < _TINY_X, 1.0, val)
    return _domain(x, val)


@jax.jit
def sbessel_y0(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    c = jnp.cos(x)
    val = jnp.where(jnp.isfinite(c), -c / x, 0.0)
    val = jnp.where(x == 0.0, -jnp.inf, val)
    return _domain(x, val)


@jax.jit
def sbessel_j1(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    in_power = x < _POWER_BOUNDARY_X
    x_power = jnp.where(in_power, x, 1.0)
    x_trig = jnp.where(in_power, _POWER_BOUNDARY_X, x)
    s = jnp.sin(x_trig)
    c = jnp.cos(x_trig)
    inv_x = 1.0 / x_trig
    by_power = series.power_series_factor(x_power * x_power, 1, _K_MAX_POWER, -1.0) * x_power / 3.0
    by_trig = jnp.where(jnp.isfinite(s) & jnp.isfinite(c), -inv_x * (c - inv_x * s), 0.0)
    val = jnp.where(in_power, by_power, by_trig)
    return _domain(x, val)


@jax.jit
def sbessel_y1(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    s = jnp.sin(x)
    c = jnp.cos(x)
    inv_x = 1.0 / x
    val = jnp.where(jnp.isfinite(s) & jnp.isfinite(c), -inv_x * (s + c * inv_x), 0.0)
    val = jnp.where(x == 0.0, -jnp.inf, val)
    return _domain(x, val)


@partial(jax.jit, static_argnames=("order", "upper_n", "boundary_x"))
def _sbessel_j_higher(
    x: jax.Array,
    j0: jax.Array,
    j1: jax.Array,
    inv_df: jax.Array,
    order: int,
    upper_n: int,
    boundary_x: float,
) -> jax.Array:
    in_power = x < _POWER_BOUNDARY_X
    in_back = (x >= _POWER_BOUNDARY_X) & (x < boundary_x)
    # each regime sees x clamped into a range where it stays finite
    x_power = jnp.where(in_power, x, 1.0)
    x_back = jnp.where(in_back, x, _POWER_BOUNDARY_X)
    x_forward = jnp.where(in_power | in_back, max(boundary_x, _POWER_BOUNDARY_X), x)

    # multiply by x**n before 1/(2n+1)!!
    by_power = (
        series.power_series_factor(x_power * x_power, order, _K_MAX_POWER, -1.0)
        * lax.integer_pow(x_power, order)
        * inv_df
    )

    inv_x = 1.0 / x_back
    v_next, v = recurrence.backward_to_order(inv_x, order, upper_n, -1.0)
    j_order = v
    f1, f0, ok = recurrence.backward_from_order(inv_x, order, 0, v_next, v, -1.0)
    # normalise on whichever of f0, f1 is farther from a zero of its function
    use0 = jnp.abs(f0) > jnp.abs(f1)
    f0 = jnp.where(use0, f0, 1.0)
    f1 = jnp.where(use0, 1.0, f1)
    by_back = jnp.where(use0, j0 / f0, j1 / f1) * j_order
    by_back = jnp.where(ok, by_back, 0.0)

    by_forward = recurrence.forward(1.0 / x_forward, order, j0, j1, -1.0, -jnp.inf)

    val = jnp.where(in_power, by_power, jnp.where(in_back, by_back, by_forward))
    return _domain(x, val)


@partial(jax.jit, static_argnames=("order",))
def _sbessel_y_higher(x: jax.Array, y0: jax.Array, y1: jax.Array, order: int) -> jax.Array:
    # 1/x is inf at x = 0; the recurrence then diverges to -inf, which is the limit
    val = recurrence.forward(1.0 / x, order, y0, y1, -1.0, -jnp.inf)
    return _domain(x, val)


class SphericalBesselFunction:
    """Spherical Bessel functions j_n and y_n of a fixed order n.

    Abstract base. Instances are obtained from :func:`instance_of` and are
    immutable. Both evaluation methods accept a scalar or an array and never
    raise for real input:

    * ``sbessel_j``: NaN for x < 0, 0 as x -> +inf.
    * ``sbessel_y``: NaN for x < 0, -inf at x = 0, 0 as x -> +inf.
    """

    __slots__ = ()

    @property
    def order(self) -> int:
        raise NotImplementedError

    def sbessel_j(self, x) -> jax.Array:
        raise NotImplementedError

    def sbessel_y(self, x) -> jax.Array:
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        if not isinstance(other, SphericalBesselFunction):
            return NotImplemented
        return self.order == other.order

    def __hash__(self) -> int:
        return hash(("SphericalBessel", self.order))

    def __repr__(self) -> str:
        return f"SphericalBessel({self.order})"


class _SBessel0(SphericalBesselFunction):
    __slots__ = ()

    @property
    def order(self) -> int:
        return 0

    def sbessel_j(self, x) -> jax.Array:
        return sbessel_j0(x)

    def sbessel_y(self, x) -> jax.Array:
        return sbessel_y0(x)


class _SBessel1(SphericalBesselFunction):
    __slots__ = ()

    @property
    def order(self) -> int:
        return 1

    def sbessel_j(self, x) -> jax.Array:
        return sbessel_j1(x)

    def sbessel_y(self, x) -> jax.Array:
        return sbessel_y1(x)


class _SBesselHigher(SphericalBesselFunction):
    __slots__ = ("_order", "_sbessel0", "_sbessel1", "_upper_n", "_boundary_x", "_inv_df")

    def __init__(self, order: int, sbessel0: _SBessel0, sbessel1: _SBessel1):
        self._order = order
        self._sbessel0 = sbessel0
        self._sbessel1 = sbessel1
        # calibrated for n <= 100 in double precision
        self._upper_n = order + 1 + int(math.ceil(8.0 * math.log(order + 3)))
        self._boundary_x = float(order)
        self._inv_df = dfac.inverse_double_factorial(order)

    @property
    def order(self) -> int:
        return self._order

    @property
    def upper_n(self) -> int:
        return self._upper_n

    @property
    def boundary_x(self) -> float:
        return self._boundary_x

    def sbessel_j(self, x) -> jax.Array:
        x = _as_real(x)
        return _sbessel_j_higher(
            x,
            self._sbessel0.sbessel_j(x),
            self._sbessel1.sbessel_j(x),
            jnp.float64(self._inv_df),
            order=self._order,
            upper_n=self._upper_n,
            boundary_x=self._boundary_x,
        )

    def sbessel_y(self, x) -> jax.Array:
        x = _as_real(x)
        return _sbessel_y_higher(x, self._sbessel0.sbessel_y(x), self._sbessel1.sbessel_y(x), order=self._order)


_SBESSEL_0 = _SBessel0()
_SBESSEL_1 = _SBessel1()


def accepts_parameter(order) -> bool:
    try:
        n = checks.check_integral(order, "sbessel.order")
    except TypeError:
        return False
    return LOWER_LIMIT_OF_ORDER <= n <= UPPER_LIMIT_OF_ORDER


def instance_of(order: int) -> SphericalBesselFunction:
    """Return the spherical Bessel function of the given order.

    Raises ``ValueError`` if the order is outside [0, 100] and ``TypeError``
    if it is not an integer.
    """
    n = checks.check_order(order, LOWER_LIMIT_OF_ORDER, UPPER_LIMIT_OF_ORDER, "sbessel.order")
    if n == 0:
        return _SBESSEL_0
    if n == 1:
        return _SBESSEL_1
    return _SBesselHigher(n, _SBESSEL_0, _SBESSEL_1)


@partial(jax.jit, static_argnames=("order",))
def sbessel_j(x: jax.Array, order: int) -> jax.Array:
    return instance_of(order).sbessel_j(x)


@partial(jax.jit, static_argnames=("order",))
def sbessel_y(x: jax.Array, order: int) -> jax.Array:
    return instance_of(order).sbessel_y(x)


@partial(jax.jit, static_argnames=("order", "kind"))
def sbessel_eval(x: jax.Array, order: int, kind: str = "j") -> jax.Array:
    checks.check_in_set(kind, _KINDS, "sbessel.kind")
    fn = instance_of(order)
    if kind == "j":
        return fn.sbessel_j(x)
    return fn.sbessel_y(x)


__all__ = [
    "LOWER_LIMIT_OF_ORDER",
    "UPPER_LIMIT_OF_ORDER",
    "SphericalBesselFunction",
    "accepts_parameter",
    "instance_of",
    "sbessel_j0",
    "sbessel_y0",
    "sbessel_j1",
    "sbessel_y1",
    "sbessel_j",
    "sbessel_y",
    "sbessel_eval",
]

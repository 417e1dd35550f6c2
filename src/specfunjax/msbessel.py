"""Modified spherical Bessel functions i_n(x), k_n(x) of integer order 0 <= n <= 100.

k_n follows the convention k_0(x) = exp(-x)/x. Exponentially scaled variants
ic_n(x) = i_n(x) exp(-x) and kc_n(x) = k_n(x) exp(x) are provided alongside.

For n >= 2 the scaled first kind ic_n is evaluated by a power series (x < 1),
Miller's backward recurrence (1 <= x <= n**2/2) or an asymptotic expansion in
1/(8x) (x > n**2/2); i_n is recovered from ic_n through a shifted exponential.
k_n and kc_n always use the forward recurrence.
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
from .order_limits import MSBESSEL_LOWER_LIMIT_OF_ORDER, MSBESSEL_UPPER_LIMIT_OF_ORDER

jax.config.update("jax_enable_x64", True)

LOWER_LIMIT_OF_ORDER = MSBESSEL_LOWER_LIMIT_OF_ORDER
UPPER_LIMIT_OF_ORDER = MSBESSEL_UPPER_LIMIT_OF_ORDER

_TINY_X = 1e-100
_POWER_BOUNDARY_X = 1.0
# Above this x, exp(-2x) is negligible and i_0, i_1 switch to the shifted form.
_LARGE_X = 24.0
# exp(x) = exp(x - S) * exp(S) keeps i_n finite as long as i_n itself is.
_SHIFT_X = 20.0
_EXP_SHIFT = math.exp(_SHIFT_X)
_INV_SQ_EXP_SHIFT = 1.0 / (_EXP_SHIFT * _EXP_SHIFT)
_K_MAX_POWER = 10
_K_MAX_ASYMPTOTIC = 20
# k_n uses unscaled seeds below this x.
_K_RAW_BOUNDARY_X = 2.0
_KINDS = ("i", "k", "ic", "kc")


def _as_real(x) -> jax.Array:
    return jnp.asarray(x, dtype=jnp.float64)


def _domain(x: jax.Array, val: jax.Array) -> jax.Array:
    return jnp.where(x >= 0.0, val, jnp.nan)


def _unscale(x: jax.Array, ic: jax.Array) -> jax.Array:
    return (ic * _EXP_SHIFT) * jnp.exp(x - _SHIFT_X)


@jax.jit
def msbessel_i0(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    in_small = x < _LARGE_X
    x_small = jnp.where(in_small, x, 1.0)
    x_large = jnp.where(in_small, _LARGE_X, x)
    m = jnp.expm1(x_small)
    by_expm1 = m * (1.0 + 0.5 * m) / (x_small * (1.0 + m))
    es = jnp.exp(x_large - _SHIFT_X)
    by_shift = (_EXP_SHIFT * 0.5 / x_large) * (es - _INV_SQ_EXP_SHIFT / es)
    val = jnp.where(in_small, by_expm1, by_shift)
    val = jnp.where(x < _TINY_X, 1.0, val)
    val = jnp.where(x == jnp.inf, jnp.inf, val)
    return _domain(x, val)


@jax.jit
def msbessel_ic0(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    val = -jnp.expm1(-2.0 * x) * 0.5 / x
    val = jnp.where(x < _TINY_X, 1.0, val)
    val = jnp.where(x == jnp.inf, 0.0, val)
    return _domain(x, val)


@jax.jit
def msbessel_k0(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    val = jnp.where(x == 0.0, jnp.inf, jnp.exp(-x) / x)
    return _domain(x, val)


@jax.jit
def msbessel_kc0(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    val = jnp.where(x == 0.0, jnp.inf, 1.0 / x)
    return _domain(x, val)


@jax.jit
def msbessel_i1(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    in_power = x < _POWER_BOUNDARY_X
    in_exp = (x >= _POWER_BOUNDARY_X) & (x < _LARGE_X)
    x_power = jnp.where(in_power, x, 0.5)
    x_exp = jnp.where(in_exp, x, _POWER_BOUNDARY_X)
    x_shift = jnp.where(in_power | in_exp, _LARGE_X, x)
    by_power = series.power_series_factor(x_power * x_power, 1, _K_MAX_POWER, 1.0) * x_power / 3.0
    e = jnp.exp(x_exp)
    inv_e = 1.0 / e
    by_exp = ((e + inv_e) - (e - inv_e) / x_exp) / x_exp * 0.5
    es = jnp.exp(x_shift - _SHIFT_X)
    inv_x = 1.0 / x_shift
    by_shift = (_EXP_SHIFT * 0.5 * inv_x) * (es * (1.0 - inv_x) + (_INV_SQ_EXP_SHIFT / es) * (1.0 + inv_x))
    val = jnp.where(in_power, by_power, jnp.where(in_exp, by_exp, by_shift))
    val = jnp.where(x == jnp.inf, jnp.inf, val)
    return _domain(x, val)


@jax.jit
def msbessel_ic1(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    in_power = x < _POWER_BOUNDARY_X
    x_power = jnp.where(in_power, x, 0.5)
    x_exp = jnp.where(in_power, _POWER_BOUNDARY_X, x)
    by_power = series.power_series_factor(x_power * x_power, 1, _K_MAX_POWER, 1.0) * x_power / 3.0 * jnp.exp(-x_power)
    inv_x = 1.0 / x_exp
    by_exp = (1.0 - inv_x + (1.0 + inv_x) * jnp.exp(-2.0 * x_exp)) * inv_x * 0.5
    val = jnp.where(in_power, by_power, by_exp)
    val = jnp.where(x == jnp.inf, 0.0, val)
    return _domain(x, val)


@jax.jit
def msbessel_k1(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    a = jnp.exp(-x) / x
    b = a / x
    val = jnp.where(jnp.isfinite(b), a + b, jnp.inf)
    val = jnp.where(x == 0.0, jnp.inf, val)
    return _domain(x, val)


@jax.jit
def msbessel_kc1(x: jax.Array) -> jax.Array:
    x = _as_real(x)
    inv_x = 1.0 / x
    b = inv_x * inv_x
    val = jnp.where(jnp.isfinite(b), inv_x + b, jnp.inf)
    val = jnp.where(x == 0.0, jnp.inf, val)
    return _domain(x, val)


def _ic_regimes(x, ic1, inv_df, order, upper_n, boundary_x, k_max_asymptotic):
    """Regime masks and candidates for ic_n.

    Each candidate is evaluated at its own copy of x, clamped into the regime
    where it is finite; the copies are returned for the exponential rescaling.
    """
    in_power = x < _POWER_BOUNDARY_X
    in_back = (x >= _POWER_BOUNDARY_X) & (x <= boundary_x)
    x_power = jnp.where(in_power, x, 0.5)
    x_back = jnp.where(in_back, x, _POWER_BOUNDARY_X)
    x_asymptotic = jnp.where(in_power | in_back, boundary_x + 1.0, x)

    by_power = (
        series.power_series_factor(x_power * x_power, order, _K_MAX_POWER, 1.0)
        * lax.integer_pow(x_power, order)
        * inv_df
    )

    inv_x = 1.0 / x_back
    v_next, v = recurrence.backward_to_order(inv_x, order, upper_n, 1.0)
    i_order = v
    _, f1, ok = recurrence.backward_from_order(inv_x, order, 1, v_next, v, 1.0)
    f1 = jnp.where(ok, f1, 1.0)
    by_back = jnp.where(ok, ic1 / f1 * i_order, 0.0)

    inv_x = 1.0 / x_asymptotic
    t = 0.125 * inv_x
    main = series.asymptotic_factor(t, order, k_max_asymptotic, 1.0)
    residual = series.asymptotic_factor(t, order, k_max_asymptotic, -1.0) * jnp.exp(-2.0 * x_asymptotic)
    parity = 1.0 if order % 2 == 1 else -1.0
    main = jnp.where(x_asymptotic < _LARGE_X, main + parity * residual, main)
    by_asymptotic = main * 0.5 * inv_x

    return (in_power, x_power, by_power), (in_back, x_back, by_back), (x_asymptotic, by_asymptotic)


@partial(jax.jit, static_argnames=("order", "upper_n", "boundary_x", "k_max_asymptotic", "scaled"))
def _msbessel_i_higher(
    x: jax.Array,
    ic1: jax.Array,
    inv_df: jax.Array,
    order: int,
    upper_n: int,
    boundary_x: float,
    k_max_asymptotic: int,
    scaled: bool,
) -> jax.Array:
    power, back, asymptotic = _ic_regimes(x, ic1, inv_df, order, upper_n, boundary_x, k_max_asymptotic)
    in_power, x_power, by_power = power
    in_back, x_back, by_back = back
    x_asymptotic, by_asymptotic = asymptotic
    if scaled:
        val = jnp.where(
            in_power,
            by_power * jnp.exp(-x_power),
            jnp.where(in_back, by_back, by_asymptotic),
        )
        val = jnp.where(x == jnp.inf, 0.0, val)
    else:
        # ic_n vanishing for a finite large x means exp(x) has already overflowed
        by_asymptotic = jnp.where(by_asymptotic == 0.0, jnp.inf, _unscale(x_asymptotic, by_asymptotic))
        val = jnp.where(
            in_power,
            by_power,
            jnp.where(in_back, _unscale(x_back, by_back), by_asymptotic),
        )
        val = jnp.where(x == jnp.inf, jnp.inf, val)
    return _domain(x, val)


@partial(jax.jit, static_argnames=("order", "scaled"))
def _msbessel_k_higher(
    x: jax.Array,
    k0: jax.Array,
    k1: jax.Array,
    kc0: jax.Array,
    kc1: jax.Array,
    order: int,
    scaled: bool,
) -> jax.Array:
    inv_x = 1.0 / x
    by_scaled = recurrence.forward(inv_x, order, kc0, kc1, 1.0, jnp.inf)
    if scaled:
        val = by_scaled
    else:
        by_raw = recurrence.forward(inv_x, order, k0, k1, 1.0, jnp.inf)
        val = jnp.where(x < _K_RAW_BOUNDARY_X, by_raw, by_scaled * jnp.exp(-x))
    return _domain(x, val)


class ModifiedSphericalBesselFunction:
    """Modified spherical Bessel functions i_n, k_n of a fixed order n.

    Abstract base. Instances are obtained from :func:`instance_of`.

    Alongside the unscaled values, ``sbessel_ic`` returns i_n(x) exp(-x) and
    ``sbessel_kc`` returns k_n(x) exp(x); both stay representable for x well
    beyond the overflow of exp(x). For x < 0 or NaN every method returns NaN.
    """

    __slots__ = ()

    @property
    def order(self) -> int:
        raise NotImplementedError

    def sbessel_i(self, x) -> jax.Array:
        raise NotImplementedError

    def sbessel_k(self, x) -> jax.Array:
        raise NotImplementedError

    def sbessel_ic(self, x) -> jax.Array:
        raise NotImplementedError

    def sbessel_kc(self, x) -> jax.Array:
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        if not isinstance(other, ModifiedSphericalBesselFunction):
            return NotImplemented
        return self.order == other.order

    def __hash__(self) -> int:
        return hash(("ModifiedSphericalBessel", self.order))

    def __repr__(self) -> str:
        return f"ModifiedSphericalBessel({self.order})"


class _MSBessel0(ModifiedSphericalBesselFunction):
    __slots__ = ()

    @property
    def order(self) -> int:
        return 0

    def sbessel_i(self, x) -> jax.Array:
        return msbessel_i0(x)

    def sbessel_k(self, x) -> jax.Array:
        return msbessel_k0(x)

    def sbessel_ic(self, x) -> jax.Array:
        return msbessel_ic0(x)

    def sbessel_kc(self, x) -> jax.Array:
        return msbessel_kc0(x)


class _MSBessel1(ModifiedSphericalBesselFunction):
    __slots__ = ()

    @property
    def order(self) -> int:
        return 1

    def sbessel_i(self, x) -> jax.Array:
        return msbessel_i1(x)

    def sbessel_k(self, x) -> jax.Array:
        return msbessel_k1(x)

    def sbessel_ic(self, x) -> jax.Array:
        return msbessel_ic1(x)

    def sbessel_kc(self, x) -> jax.Array:
        return msbessel_kc1(x)


class _MSBesselHigher(ModifiedSphericalBesselFunction):
    __slots__ = ("_order", "_msbessel0", "_msbessel1", "_upper_n", "_boundary_x", "_k_max_asymptotic", "_inv_df")

    def __init__(self, order: int, msbessel0: _MSBessel0, msbessel1: _MSBessel1):
        self._order = order
        self._msbessel0 = msbessel0
        self._msbessel1 = msbessel1
        self._upper_n = int(4.6 * order) + 3
        self._boundary_x = 0.5 * order * order
        self._k_max_asymptotic = min(order, _K_MAX_ASYMPTOTIC)
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

    def _i(self, x, scaled: bool) -> jax.Array:
        x = _as_real(x)
        return _msbessel_i_higher(
            x,
            self._msbessel1.sbessel_ic(x),
            jnp.float64(self._inv_df),
            order=self._order,
            upper_n=self._upper_n,
            boundary_x=self._boundary_x,
            k_max_asymptotic=self._k_max_asymptotic,
            scaled=scaled,
        )

    def _k(self, x, scaled: bool) -> jax.Array:
        x = _as_real(x)
        return _msbessel_k_higher(
            x,
            self._msbessel0.sbessel_k(x),
            self._msbessel1.sbessel_k(x),
            self._msbessel0.sbessel_kc(x),
            self._msbessel1.sbessel_kc(x),
            order=self._order,
            scaled=scaled,
        )

    def sbessel_i(self, x) -> jax.Array:
        return self._i(x, scaled=False)

    def sbessel_k(self, x) -> jax.Array:
        return self._k(x, scaled=False)

    def sbessel_ic(self, x) -> jax.Array:
        return self._i(x, scaled=True)

    def sbessel_kc(self, x) -> jax.Array:
        return self._k(x, scaled=True)


_MSBESSEL_0 = _MSBessel0()
_MSBESSEL_1 = _MSBessel1()


def accepts_parameter(order) -> bool:
    try:
        n = checks.check_integral(order, "msbessel.order")
    except TypeError:
        return False
    return LOWER_LIMIT_OF_ORDER <= n <= UPPER_LIMIT_OF_ORDER


def instance_of(order: int) -> ModifiedSphericalBesselFunction:
    """Return the modified spherical Bessel function of the given order.

    Raises ``ValueError`` if the order is outside [0, 100] and ``TypeError``
    if it is not an integer.
    """
    n = checks.check_order(order, LOWER_LIMIT_OF_ORDER, UPPER_LIMIT_OF_ORDER, "msbessel.order")
    if n == 0:
        return _MSBESSEL_0
    if n == 1:
        return _MSBESSEL_1
    return _MSBesselHigher(n, _MSBESSEL_0, _MSBESSEL_1)


@partial(jax.jit, static_argnames=("order",))
def msbessel_i(x: jax.Array, order: int) -> jax.Array:
    return instance_of(order).sbessel_i(x)


@partial(jax.jit, static_argnames=("order",))
def msbessel_k(x: jax.Array, order: int) -> jax.Array:
    return instance_of(order).sbessel_k(x)


@partial(jax.jit, static_argnames=("order",))
def msbessel_ic(x: jax.Array, order: int) -> jax.Array:
    return instance_of(order).sbessel_ic(x)


@partial(jax.jit, static_argnames=("order",))
def msbessel_kc(x: jax.Array, order: int) -> jax.Array:
    return instance_of(order).sbessel_kc(x)


@partial(jax.jit, static_argnames=("order", "kind"))
def msbessel_eval(x: jax.Array, order: int, kind: str = "i") -> jax.Array:
    checks.check_in_set(kind, _KINDS, "msbessel.kind")
    fn = instance_of(order)
    if kind == "i":
        return fn.sbessel_i(x)
    if kind == "k":
        return fn.sbessel_k(x)
    if kind == "ic":
        return fn.sbessel_ic(x)
    return fn.sbessel_kc(x)


__all__ = [
    "LOWER_LIMIT_OF_ORDER",
    "UPPER_LIMIT_OF_ORDER",
    "ModifiedSphericalBesselFunction",
    "accepts_parameter",
    "instance_of",
    "msbessel_i0",
    "msbessel_ic0",
    "msbessel_k0",
    "msbessel_kc0",
    "msbessel_i1",
    "msbessel_ic1",
    "msbessel_k1",
    "msbessel_kc1",
    "msbessel_i",
    "msbessel_k",
    "msbessel_ic",
    "msbessel_kc",
    "msbessel_eval",
]

from __future__ import annotations

import jax
from jax import lax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)


def power_series_factor(u: jax.Array, order: int, k_max: int, sign: float) -> jax.Array:
    """Horner sum of 1 + sum_k prod_{m<=k} sign*u / ((2m)(2m + 2*order + 1)), k <= k_max + 1.

    With ``u = x**2`` this is the bracket of j_n (sign -1) or i_n (sign +1)
    after factoring out x**n / (2n+1)!!.
    """
    n2_p_1 = jnp.float64(2 * order + 1)

    def body(i, value):
        k2 = jnp.float64(2 * (k_max + 1 - i))
        return value * (sign * u / (k2 * (k2 + n2_p_1))) + 1.0

    return lax.fori_loop(0, k_max + 1, body, jnp.zeros_like(u))


def asymptotic_factor(t: jax.Array, order: int, k_max: int, sign: float) -> jax.Array:
    """Horner sum of the Hankel-type expansion in t = 1/(8x) for half-integer order.

    Successive terms have ratio sign * ((2k-1)**2 - (2*order+1)**2) / k * t,
    which vanishes at k = order + 1, so the sum is exact when k_max >= order.
    """
    const_order = jnp.float64((2 * order + 1) ** 2)

    def body(i, value):
        k = k_max + 1 - i
        k2m1 = jnp.float64(2 * k - 1)
        ratio = sign * (k2m1 * k2m1 - const_order) / jnp.float64(k)
        return value * ratio * t + 1.0

    return lax.fori_loop(0, k_max + 1, body, jnp.zeros_like(t))


__all__ = ["power_series_factor", "asymptotic_factor"]

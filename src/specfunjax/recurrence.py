"""Three-term recurrences in the order shared by the spherical Bessel kernels.

Both families obey

    f_{nu+1} = sign * f_{nu-1} + (2 nu + 1) / x * f_nu

with ``sign = -1`` for j, y and ``sign = +1`` for i, k (k in the raw or the
exp-scaled form). The loops below carry only adjacent-order values and a
finiteness flag; loop lengths are static Python ints derived from the order.
"""

from __future__ import annotations

import jax
from jax import lax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

# Starting magnitude of the Miller recurrence and the rescale trigger.
BACKWARD_SEED = 1e-280
BACKWARD_OVERFLOW_GUARD = 1e200


def forward(
    inv_x: jax.Array,
    order: int,
    v0: jax.Array,
    v1: jax.Array,
    sign: float,
    divergent: float,
) -> jax.Array:
    """Propagate (v0, v1) upward to ``order``; non-finite steps give ``divergent``."""

    def body(nu, state):
        v_prev, v, ok = state
        v_next = sign * v_prev + jnp.float64(2 * nu + 1) * inv_x * v
        ok = ok & jnp.isfinite(v_next)
        return v, v_next, ok

    ok0 = jnp.ones(jnp.shape(v1), dtype=jnp.bool_)
    _, v, ok = lax.fori_loop(1, order, body, (v0, v1, ok0))
    return jnp.where(ok, v, divergent)


def backward_to_order(
    inv_x: jax.Array,
    order: int,
    upper_n: int,
    sign: float,
) -> tuple[jax.Array, jax.Array]:
    """Run the Miller recurrence from ``upper_n`` down to ``order``.

    Returns the pair (f_{order+1}, f_order), normalised so that the larger
    magnitude equals the seed. Only the ratio of the pair is meaningful.
    """

    seed = jnp.full(jnp.shape(inv_x), BACKWARD_SEED, dtype=jnp.float64)

    def body(i, state):
        v_next, v = state
        nu = upper_n - i
        v_prev = sign * v_next + jnp.float64(2 * nu + 1) * inv_x * v
        big = jnp.abs(v_prev) >= BACKWARD_OVERFLOW_GUARD
        divisor = jnp.where(big, v_prev, 1.0)
        v_next = jnp.where(big, v / divisor * BACKWARD_SEED, v)
        v = jnp.where(big, BACKWARD_SEED, v_prev)
        return v_next, v

    v_next, v = lax.fori_loop(0, upper_n - order, body, (jnp.zeros_like(seed), seed))
    scale = jnp.maximum(jnp.abs(v_next), jnp.abs(v))
    return v_next / scale * BACKWARD_SEED, v / scale * BACKWARD_SEED


def backward_from_order(
    inv_x: jax.Array,
    order: int,
    stop: int,
    v_next: jax.Array,
    v: jax.Array,
    sign: float,
) -> tuple[jax.Array, jax.Array, jax.Array]:
    """Continue downward from ``order`` to ``stop``.

    Returns (f_{stop+1}, f_stop, ok) where ``ok`` is False wherever an
    intermediate value left the finite range.
    """

    def body(i, state):
        v_next, v, ok = state
        nu = order - i
        v_prev = sign * v_next + jnp.float64(2 * nu + 1) * inv_x * v
        ok = ok & jnp.isfinite(v_prev)
        return v, v_prev, ok

    ok0 = jnp.ones(jnp.shape(v), dtype=jnp.bool_)
    return lax.fori_loop(0, order - stop, body, (v_next, v, ok0))


__all__ = [
    "BACKWARD_SEED",
    "BACKWARD_OVERFLOW_GUARD",
    "forward",
    "backward_to_order",
    "backward_from_order",
]

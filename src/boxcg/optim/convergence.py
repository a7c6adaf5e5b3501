from __future__ import annotations

from typing import NamedTuple

import jax
import jax.numpy as jnp
from jaxtyping import Array, Bool, Float, Scalar


class Stationarity(NamedTuple):
    converged: Bool[Array, ""]
    free_norm: Scalar
    target: Scalar
    lower_ok: Bool[Array, ""]
    upper_ok: Bool[Array, ""]


@jax.jit
def first_order_conditions(
    grad: Float[Array, " n"],
    free: Bool[Array, " n"],
    active_lower: Bool[Array, " n"],
    active_upper: Bool[Array, " n"],
    value: Scalar | float,
    tol_norm: Scalar | float,
) -> Stationarity:
    """KKT conditions of the box-constrained problem.

    The reduced gradient (restricted to the free coordinates) must vanish up
    to ``tol_norm * (1 + |value|)``, the gradient must be non-negative on
    coordinates pinned at their lower bound and non-positive on coordinates
    pinned at their upper bound. Empty sets satisfy their condition.
    """
    free_norm = jnp.linalg.norm(jnp.where(free, grad, 0.0))
    target = tol_norm * (1.0 + jnp.abs(value))
    lower_ok = jnp.all(jnp.where(active_lower, grad >= 0.0, True))
    upper_ok = jnp.all(jnp.where(active_upper, grad <= 0.0, True))
    converged = (free_norm <= target) & lower_ok & upper_ok
    return Stationarity(converged, free_norm, target, lower_ok, upper_ok)

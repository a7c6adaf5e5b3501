from __future__ import annotations

from typing import NamedTuple

import jax
import jax.numpy as jnp
from jaxtyping import Array, Bool, Float, Scalar


class ProjectedStep(NamedTuple):
    """Trial point clipped to the box and the coordinates it pinned.

    ``alpha_eff`` holds the effective step of every activated coordinate and
    zero elsewhere.
    """

    x: Float[Array, " n"]
    active: Bool[Array, " n"]
    active_lower: Bool[Array, " n"]
    active_upper: Bool[Array, " n"]
    alpha_eff: Float[Array, " n"]


@jax.jit
def project(
    alpha: Scalar | float,
    x: Float[Array, " n"],
    d: Float[Array, " n"],
    lower: Float[Array, " n"],
    upper: Float[Array, " n"],
) -> ProjectedStep:
    """Move ``x`` by ``alpha * d`` and snap every violating coordinate to its bound.

    Only the bound the direction moves towards is tested: a coordinate with
    ``d < 0`` can only hit ``lower``, one with ``d > 0`` only ``upper`` and one
    with ``d == 0`` never activates. A coordinate that reaches its bound
    exactly (zero violation) counts as active.

    Args:
        alpha: Step length.
        x: Feasible starting point.
        d: Search direction.
        lower: Lower bounds, may contain ``-inf``.
        upper: Upper bounds, may contain ``+inf``.

    Returns:
        ProjectedStep with the projected point, the active masks and the
        effective step ``alpha - violation / d`` of each activated coordinate.
    """
    xn = x + alpha * d

    violation_lower = lower - xn
    violation_upper = xn - upper

    at_lower = (d < 0.0) & (violation_lower >= 0.0)
    at_upper = (d > 0.0) & (violation_upper >= 0.0)

    safe_d = jnp.where(d == 0.0, 1.0, d)
    alpha_eff = jnp.where(at_lower, alpha - violation_lower / safe_d, 0.0)
    alpha_eff = jnp.where(at_upper, alpha - violation_upper / safe_d, alpha_eff)

    # Pinned coordinates take the bound value itself, not x + alpha * d - violation
    xn = jnp.where(at_lower, lower, xn)
    xn = jnp.where(at_upper, upper, xn)

    return ProjectedStep(
        x=xn,
        active=at_lower | at_upper,
        active_lower=at_lower,
        active_upper=at_upper,
        alpha_eff=alpha_eff,
    )

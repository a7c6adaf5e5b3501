from __future__ import annotations

from collections.abc import Callable
from typing import Literal, NamedTuple

import jax
import jax.numpy as jnp
from jaxtyping import Array, Bool, Float, Scalar

from .state import IterateState

# Below this cosine between d and the gradient a conjugate direction is kept
DESCENT_COSINE = -1e-3

DIRECTION_NAMES = Literal["steepest_descent", "projected_cg"]


class ConjugateState(NamedTuple):
    counter: int = 0
    used: bool = False


class DirectionUpdate(NamedTuple):
    direction: Float[Array, " n"]
    conjugate: ConjugateState
    cg_used: bool


class DirectionStrategy(NamedTuple):
    """A search direction rule as an ``(init, update)`` pair.

    ``update(state, conjugate, iteration)`` returns the direction for the
    iteration about to start together with the new conjugate bookkeeping.
    """

    init: Callable[[], ConjugateState]
    update: Callable[[IterateState, ConjugateState, int], DirectionUpdate]


@jax.jit
def conjugate_direction(
    grad: Float[Array, " n"],
    last_grad: Float[Array, " n"],
    last_direction: Float[Array, " n"],
    last_active: Bool[Array, " n"],
    last_alpha_eff: Float[Array, " n"],
) -> tuple[Float[Array, " n"], Bool[Array, ""], Scalar]:
    """Projected conjugate direction and whether it is a usable descent direction.

    Every coordinate pinned by the previous projection adds the rank-one
    term ``alpha_eff * last_direction**2`` to the gradient difference, so the
    kink introduced by the projection does not pollute ``beta``.

    Returns:
        ``(direction, accepted, beta)``. When not accepted the direction is
        the steepest descent ``-grad``.
    """
    y = grad - last_grad
    y = y + jnp.where(last_active, last_alpha_eff * last_direction**2, 0.0)

    beta = jnp.dot(y, grad) / jnp.dot(y, last_direction)
    beta = jnp.where(jnp.isfinite(beta) & (beta >= 0.0), beta, 0.0)

    d = -grad + beta * last_direction

    cosine = jnp.dot(d, grad) / (jnp.linalg.norm(d) * jnp.linalg.norm(grad))
    accepted = (cosine < DESCENT_COSINE) & (beta != 0.0)

    return jnp.where(accepted, d, -grad), accepted, beta


def steepest_descent() -> DirectionStrategy:
    """Always ``-grad``."""

    def init_fn() -> ConjugateState:
        return ConjugateState()

    def update_fn(
        state: IterateState, conjugate: ConjugateState, iteration: int
    ) -> DirectionUpdate:
        del iteration
        return DirectionUpdate(-state.grad, ConjugateState(0, conjugate.used), False)

    return DirectionStrategy(init_fn, update_fn)


def projected_conjugate_gradient() -> DirectionStrategy:
    """Conjugate direction while the active set is stable, steepest descent otherwise.

    The conjugate direction is attempted only from the second iteration on,
    while no more than ``n`` conjugate steps have been taken in a row, and
    when the free set did not change during the previous iteration. Any
    failed attempt or unmet condition restarts the count.
    """

    def init_fn() -> ConjugateState:
        return ConjugateState()

    def update_fn(
        state: IterateState, conjugate: ConjugateState, iteration: int
    ) -> DirectionUpdate:
        stable = bool(jnp.array_equal(state.free, state.last_free))
        if iteration <= 1 or conjugate.counter > state.size or not stable:
            return DirectionUpdate(-state.grad, ConjugateState(0, conjugate.used), False)

        direction, accepted, _ = conjugate_direction(
            state.grad,
            state.last_grad,
            state.last_direction,
            state.active,
            state.alpha_eff,
        )
        if bool(accepted):
            return DirectionUpdate(direction, ConjugateState(conjugate.counter + 1, True), True)
        return DirectionUpdate(direction, ConjugateState(0, conjugate.used), False)

    return DirectionStrategy(init_fn, update_fn)


def get_direction_strategy(name: DIRECTION_NAMES) -> DirectionStrategy:
    if name == "steepest_descent":
        return steepest_descent()
    elif name == "projected_cg":
        return projected_conjugate_gradient()
    raise ValueError(
        f"Unknown direction strategy: {name}. Available: {list(DIRECTION_NAMES.__args__)}"
    )

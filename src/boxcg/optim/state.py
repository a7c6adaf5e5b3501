from __future__ import annotations

import enum
from typing import NamedTuple

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Bool, Float


class Status(enum.Enum):
    """Lifecycle of an optimizer run."""

    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    LINESEARCH_FAILED = "linesearch_failed"

    @property
    def finished(self) -> bool:
        return self is not Status.RUNNING


class IterateState(NamedTuple):
    """Everything the next iteration needs to know about the current one.

    The ``last_*`` fields describe the previous iterate and feed the conjugate
    direction. Index sets are boolean masks over the coordinates; ``free`` is
    always the complement of ``active``.
    """

    x: Float[Array, " n"]
    grad: Float[Array, " n"]
    value: float
    last_x: Float[Array, " n"]
    last_grad: Float[Array, " n"]
    last_direction: Float[Array, " n"]
    active: Bool[Array, " n"]
    active_lower: Bool[Array, " n"]
    active_upper: Bool[Array, " n"]
    free: Bool[Array, " n"]
    last_free: Bool[Array, " n"]
    alpha_eff: Float[Array, " n"]

    @property
    def size(self) -> int:
        return self.x.shape[0]


def initial_state(x: Float[Array, " n"], value: float, grad: Float[Array, " n"]) -> IterateState:
    """State before the first iteration: no coordinate is pinned yet.

    Both ``free`` and ``last_free`` start as every coordinate, so the free set
    counts as unchanged after an iteration 1 that pins nothing and the
    conjugate direction can be tried from iteration 2. Starting both sets
    empty instead would delay the first attempt to iteration 3 unless
    iteration 1 pins every coordinate.
    """
    no_active = jnp.zeros(x.shape, dtype=bool)
    all_free = jnp.ones(x.shape, dtype=bool)
    zeros = jnp.zeros_like(x)
    return IterateState(
        x=x,
        grad=grad,
        value=value,
        last_x=x,
        last_grad=zeros,
        last_direction=zeros,
        active=no_active,
        active_lower=no_active,
        active_upper=no_active,
        free=all_free,
        last_free=all_free,
        alpha_eff=zeros,
    )


class History(NamedTuple):
    """Per-iteration records of a run, one entry per executed iteration."""

    objectives: np.ndarray
    gradient_norms: np.ndarray
    steps: np.ndarray

    @classmethod
    def allocate(cls, size: int) -> History:
        return cls(np.zeros(size), np.zeros(size), np.zeros(size))

    def truncate(self, length: int) -> History:
        return History(
            objectives=self.objectives[:length].copy(),
            gradient_norms=self.gradient_norms[:length].copy(),
            steps=self.steps[:length].copy(),
        )

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Bool, Float, Scalar

from .config import SolverConfig
from .projection import ProjectedStep, project

# Below this normalized slope a projected direction is considered degenerate
DEGENERATE_SLOPE = -1e-3

Objective = Callable[[Float[Array, " n"]], ArrayLike]
Gradient = Callable[[Float[Array, " n"]], ArrayLike]


class TrialStep(NamedTuple):
    step: ProjectedStep
    dx: Float[Array, " n"]
    slope: Scalar
    normalized_slope: Scalar


class LineSearchResult(NamedTuple):
    """Outcome of the projected backtracking.

    On failure ``x``, ``value`` and ``grad`` are the starting point's, while
    the masks and ``step`` come from the last (rejected) trial.
    """

    x: Float[Array, " n"]
    value: float
    grad: Float[Array, " n"]
    active: Bool[Array, " n"]
    active_lower: Bool[Array, " n"]
    active_upper: Bool[Array, " n"]
    step: float
    alpha_eff: Float[Array, " n"]
    direction: Float[Array, " n"]
    slope: float
    success: bool


def evaluate_gradient(grad_fn: Gradient, x: Float[Array, " n"]) -> Float[Array, " n"]:
    return jnp.asarray(grad_fn(x), dtype=x.dtype).reshape(x.shape)


@jax.jit
def normalize(d: Float[Array, " n"]) -> Float[Array, " n"]:
    """Scale ``d`` to unit norm; a zero vector is returned unchanged."""
    norm = jnp.linalg.norm(d)
    return jnp.where(norm > 0.0, d / jnp.where(norm > 0.0, norm, 1.0), d)


@jax.jit
def projected_trial(
    alpha: Scalar | float,
    x0: Float[Array, " n"],
    d: Float[Array, " n"],
    grad: Float[Array, " n"],
    lower: Float[Array, " n"],
    upper: Float[Array, " n"],
) -> TrialStep:
    """Project a trial step and measure its slope along the gradient.

    The slope is taken on the effective displacement ``dx = xn - x0``, so a
    direction that mostly pushes into active bounds shows a small normalized
    slope even when ``d`` itself is a descent direction.
    """
    step = project(alpha, x0, d, lower, upper)
    dx = step.x - x0
    slope = jnp.dot(grad, dx)
    normalized_slope = slope / (jnp.linalg.norm(grad) * jnp.linalg.norm(dx))
    return TrialStep(step=step, dx=dx, slope=slope, normalized_slope=normalized_slope)


def armijo_projected(
    fn: Objective,
    grad_fn: Gradient,
    x0: Float[Array, " n"],
    f0: float,
    grad0: Float[Array, " n"],
    direction: Float[Array, " n"],
    lower: Float[Array, " n"],
    upper: Float[Array, " n"],
    constrained: bool,
    config: SolverConfig,
) -> LineSearchResult:
    """Backtracking line search along a projected direction.

    Starting from ``config.alpha_init``, each trial point is projected onto
    the box and accepted when it satisfies

    - Armijo: ``f(xn) <= f0 + armijo_c * m`` with ``m = grad0 . (xn - x0)``
    - Curvature (if ``config.strong``): ``grad(xn) . dx >= sigma * grad0 . dx``

    otherwise the step is multiplied by ``config.cut_factor`` until it drops
    to ``config.alpha_min``. For constrained problems, a trial whose projected
    displacement is nearly orthogonal to the gradient switches the direction
    to ``-grad0`` for the remaining trials.

    Args:
        fn: Objective function.
        grad_fn: Gradient of ``fn``.
        x0: Feasible starting point.
        f0: ``fn(x0)``.
        grad0: ``grad_fn(x0)``.
        direction: Search direction, normalized here.
        lower: Lower bounds.
        upper: Upper bounds.
        constrained: Whether any bound is finite.
        config: Line search parameters.

    Returns:
        LineSearchResult, with ``direction`` the last direction used.
    """
    d = normalize(direction)
    alpha = config.alpha_init

    while True:
        trial = projected_trial(alpha, x0, d, grad0, lower, upper)

        # NaN (zero displacement) never triggers the reset
        if constrained and float(trial.normalized_slope) >= DEGENERATE_SLOPE:
            d = -grad0
            trial = projected_trial(alpha, x0, d, grad0, lower, upper)

        slope = float(trial.slope)
        if slope < 0.0:
            value = float(fn(trial.step.x))
            if value <= f0 + config.armijo_c * slope:
                # The gradient is evaluated anyway, the caller needs it
                grad = evaluate_gradient(grad_fn, trial.step.x)
                if not config.strong or float(jnp.dot(grad, trial.dx)) >= config.sigma * slope:
                    return LineSearchResult(
                        x=trial.step.x,
                        value=value,
                        grad=grad,
                        active=trial.step.active,
                        active_lower=trial.step.active_lower,
                        active_upper=trial.step.active_upper,
                        step=alpha,
                        alpha_eff=trial.step.alpha_eff,
                        direction=d,
                        slope=slope,
                        success=True,
                    )

        alpha = alpha * config.cut_factor
        if alpha <= config.alpha_min:
            break

    return LineSearchResult(
        x=x0,
        value=f0,
        grad=grad0,
        active=trial.step.active,
        active_lower=trial.step.active_lower,
        active_upper=trial.step.active_upper,
        step=alpha,
        alpha_eff=trial.step.alpha_eff,
        direction=d,
        slope=slope,
        success=False,
    )

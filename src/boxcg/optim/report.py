"""Per-iteration snapshots and console reporting of solver runs.

The solver only builds ``IterationSnapshot`` values and hands them to an
observer; rendering lives here so that runs without output stay silent.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, NamedTuple

import jax.numpy as jnp
from tqdm import tqdm

from ..logging_utils import banner, field
from .convergence import Stationarity
from .state import IterateState

if TYPE_CHECKING:
    from .solve import OptimizerLoop


class IterationSnapshot(NamedTuple):
    """Values describing one finished iteration.

    ``lower_ok`` / ``upper_ok`` use the display tolerance
    ``grad >= -tol_norm`` / ``grad <= tol_norm`` on the pinned coordinates,
    looser than the convergence test.
    """

    iteration: int
    cg_used: bool
    gradient_norm: float
    target_tolerance: float
    step: float
    objective: float
    n_active_lower: int
    n_active_upper: int
    grad_min: float
    grad_max: float
    lower_ok: bool
    upper_ok: bool


Observer = Callable[[IterationSnapshot], None]


def null_observer(snapshot: IterationSnapshot) -> None:
    del snapshot


def make_snapshot(
    iteration: int,
    cg_used: bool,
    state: IterateState,
    stationarity: Stationarity,
    step: float,
    tol_norm: float,
) -> IterationSnapshot:
    grad = state.grad
    lower_ok = jnp.all(jnp.where(state.active_lower, grad >= -tol_norm, True))
    upper_ok = jnp.all(jnp.where(state.active_upper, grad <= tol_norm, True))
    return IterationSnapshot(
        iteration=iteration,
        cg_used=cg_used,
        gradient_norm=float(stationarity.free_norm),
        target_tolerance=float(stationarity.target),
        step=float(step),
        objective=float(state.value),
        n_active_lower=int(jnp.sum(state.active_lower)),
        n_active_upper=int(jnp.sum(state.active_upper)),
        grad_min=float(jnp.min(grad)),
        grad_max=float(jnp.max(grad)),
        lower_ok=bool(lower_ok),
        upper_ok=bool(upper_ok),
    )


class ProgressReporter:
    """Observer drawing a tqdm progress bar with the latest iteration values.

    Example:
        >>> reporter = ProgressReporter(total=100)
        >>> result = solve(f, df, x0, observer=reporter)
        >>> reporter.close()
    """

    def __init__(self, total: int, desc: str = "Minimizing...", disable: bool = False):
        self.bar = tqdm(total=total, desc=desc, disable=disable, leave=True)

    def __call__(self, snapshot: IterationSnapshot) -> None:
        self.bar.set_postfix(
            cg=snapshot.cg_used,
            norm=f"{snapshot.gradient_norm:.3e}",
            target=f"{snapshot.target_tolerance:.3e}",
            step=f"{snapshot.step:.3e}",
            objective=f"{snapshot.objective:.6e}",
            lower=snapshot.n_active_lower,
            upper=snapshot.n_active_upper,
            lower_ok=snapshot.lower_ok,
            upper_ok=snapshot.upper_ok,
            refresh=False,
        )
        self.bar.update(1)

    def close(self) -> None:
        self.bar.close()


def print_summary(loop: OptimizerLoop, elapsed: float) -> None:
    """Print the end-of-run report of an optimizer loop.

    Args:
        loop: A finished optimizer loop.
        elapsed: Wall time of the run in seconds.
    """
    config = loop.config
    state = loop.state
    tol_norm = config.tol_norm
    stationarity = loop.stationarity
    grad = state.grad

    lower_ok = bool(jnp.all(jnp.where(state.active_lower, grad >= -tol_norm, True)))
    upper_ok = bool(jnp.all(jnp.where(state.active_upper, grad <= tol_norm, True)))
    n_lower = int(jnp.sum(state.active_lower))
    n_upper = int(jnp.sum(state.active_upper))

    method = "Conjugate gradient" if config.enable_cg else "Steepest descent"
    kind = "Constrained" if loop.constrained else "Unconstrained"

    banner("End of the main optimization loop")
    field("Method", method)
    if config.enable_cg and loop.conjugate.used:
        field("Used CG", "Yes")
    field("Type of problem", kind)
    field("Number of variables", state.size)
    field("Initial objective", loop.f_initial)
    field("Final objective", state.value)
    if loop.f_initial != 0.0 and state.value != 0.0:
        field("% of minimization", 100 * (state.value - loop.f_initial) / loop.f_initial)
    field("Free variables", int(jnp.sum(state.free)))
    field(
        "Blocked variables",
        f"{n_lower + n_upper}: {n_lower} for lower bound {n_upper} for upper bound",
    )
    field("Number of iterations", f"{loop.iteration} of {config.nmax_iter}")
    field("Status", loop.status.value)
    field("First order conditions", f"{loop.converged} {lower_ok} {upper_ok}")
    if stationarity is not None:
        field(
            "Norm(free positions)",
            f"{float(stationarity.free_norm)} Reference {float(stationarity.target)}",
        )
    field("Total time", f"{elapsed:.2f} s")
    print("*" * 56)

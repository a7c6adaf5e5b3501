from __future__ import annotations

from time import perf_counter
from typing import NamedTuple, Optional

import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Float

from ..logging_utils import success, warning
from .config import SolverConfig, check_inputs, expand_bounds
from .convergence import Stationarity, first_order_conditions
from .direction import DirectionStrategy, projected_conjugate_gradient, steepest_descent
from .linesearch import Gradient, Objective, armijo_projected, evaluate_gradient
from .report import Observer, ProgressReporter, make_snapshot, null_observer, print_summary
from .state import History, IterateState, Status, initial_state

# Stationarity is only trusted once this many iterations have run
WARMUP_ITERATIONS = 2


class SolveResult(NamedTuple):
    """Outcome of a run.

    Attributes
    ----------
    x : Array
        Final point, feasible.
    f_initial : float
        Objective at the starting point.
    f_final : float
        Objective at ``x``.
    converged : bool
        Whether the first order conditions hold at ``x``.
    history : History
        Objective, free gradient norm and step of every executed iteration.
    status : Status
        Terminal state of the run.
    iterations : int
        Number of executed iterations, equal to ``len(history.objectives)``.
    """

    x: Float[Array, " n"]
    f_initial: float
    f_final: float
    converged: bool
    history: History
    status: Status
    iterations: int


class OptimizerLoop:
    """Projected steepest descent / conjugate gradient iterations on a box.

    The loop owns the run state and replaces it after every iteration. Each
    call to ``step`` picks a direction, runs the projected line search, rolls
    the state and decides whether the run is finished.

    Example:
        >>> loop = OptimizerLoop(f, df, x0, lower, upper, SolverConfig(verbose=False))
        >>> while loop.step() is Status.RUNNING:
        ...     print(loop.state.value)
        >>> result = loop.result()
    """

    def __init__(
        self,
        fn: Objective,
        grad_fn: Gradient,
        x0: ArrayLike,
        lower: Optional[ArrayLike] = None,
        upper: Optional[ArrayLike] = None,
        config: Optional[SolverConfig] = None,
        observer: Optional[Observer] = None,
    ):
        self.config = config if config is not None else SolverConfig()

        # jnp.array copies, the caller's buffer is never aliased
        x = jnp.array(x0, dtype=jnp.float64).reshape(-1)
        self.lower, self.upper = expand_bounds(x.shape[0], lower, upper)
        check_inputs(x, self.lower, self.upper)

        self.fn = fn
        self.grad_fn = grad_fn
        self.observer = observer if observer is not None else null_observer
        self.constrained = not bool(
            jnp.all(jnp.isneginf(self.lower)) & jnp.all(jnp.isposinf(self.upper))
        )

        self.strategy: DirectionStrategy = (
            projected_conjugate_gradient() if self.config.enable_cg else steepest_descent()
        )
        self.conjugate = self.strategy.init()

        self.f_initial = float(fn(x))
        self.state: IterateState = initial_state(x, self.f_initial, evaluate_gradient(grad_fn, x))
        self.history = History.allocate(self.config.nmax_iter)
        self.stationarity: Optional[Stationarity] = None
        self.iteration = 0
        self.status = Status.RUNNING

    @property
    def converged(self) -> bool:
        return self.status is Status.CONVERGED

    def step(self) -> Status:
        """Run one iteration and return the resulting status.

        Raises:
            RuntimeError: If the run is already finished.
        """
        if self.status.finished:
            raise RuntimeError(f"Cannot step a finished run (status: {self.status.value})")

        config = self.config
        state = self.state
        k = self.iteration
        self.iteration += 1

        self.history.objectives[k] = state.value

        update = self.strategy.update(state, self.conjugate, self.iteration)
        self.conjugate = update.conjugate

        ls = armijo_projected(
            self.fn,
            self.grad_fn,
            state.x,
            state.value,
            state.grad,
            update.direction,
            self.lower,
            self.upper,
            self.constrained,
            config,
        )

        free = ~ls.active
        stationarity = first_order_conditions(
            ls.grad, free, ls.active_lower, ls.active_upper, ls.value, config.tol_norm
        )
        self.history.gradient_norms[k] = float(stationarity.free_norm)
        self.history.steps[k] = ls.step

        self.state = IterateState(
            x=ls.x,
            grad=ls.grad,
            value=ls.value,
            last_x=state.x,
            last_grad=state.grad,
            last_direction=ls.direction,
            active=ls.active,
            active_lower=ls.active_lower,
            active_upper=ls.active_upper,
            free=free,
            last_free=state.free,
            alpha_eff=ls.alpha_eff,
        )
        self.stationarity = stationarity

        self.observer(
            make_snapshot(
                self.iteration, update.cg_used, self.state, stationarity, ls.step, config.tol_norm
            )
        )

        stationary = bool(stationarity.converged)
        if self.iteration > WARMUP_ITERATIONS and stationary:
            self.status = Status.CONVERGED
        elif not ls.success:
            if config.verbose:
                warning("The solution cannot be improved during the line-search.")
            if stationary:
                if config.verbose:
                    success("But first order conditions are satisfied.")
                self.status = Status.CONVERGED
            else:
                if config.verbose:
                    warning("Not all first order conditions are satisfied, proceed with care.")
                self.status = Status.LINESEARCH_FAILED
        elif self.iteration >= config.nmax_iter:
            self.status = Status.EXHAUSTED

        return self.status

    def run(self) -> SolveResult:
        while not self.status.finished:
            self.step()
        return self.result()

    def result(self) -> SolveResult:
        return SolveResult(
            x=self.state.x,
            f_initial=self.f_initial,
            f_final=self.state.value,
            converged=self.converged,
            history=self.history.truncate(self.iteration),
            status=self.status,
            iterations=self.iteration,
        )


def solve(
    fn: Objective,
    grad_fn: Gradient,
    x0: ArrayLike,
    lower: Optional[ArrayLike] = None,
    upper: Optional[ArrayLike] = None,
    nmax_iter: int = 100,
    tol_norm: float = 1e-6,
    verbose: bool = True,
    armijo_c: float = 0.1,
    cut_factor: float = 0.5,
    alpha_init: float = 10.0,
    alpha_min: float = 1e-12,
    sigma: float = 0.95,
    strong: bool = True,
    enable_cg: bool = False,
    *,
    config: Optional[SolverConfig] = None,
    observer: Optional[Observer] = None,
) -> SolveResult:
    """Minimize ``fn`` subject to ``lower <= x <= upper``.

    Projected steepest descent, optionally accelerated by a projected
    conjugate gradient direction, with an Armijo / Wolfe backtracking line
    search. Only local first order stationarity is established.

    Parameters
    ----------
    fn : Callable
        Objective, ``fn(x) -> float``.
    grad_fn : Callable
        Gradient of ``fn``, ``grad_fn(x) -> array of shape (n,)``.
    x0 : ArrayLike
        Starting point, inside the bounds. Copied, never modified.
    lower, upper : ArrayLike, optional
        Bounds. Omitted or empty bounds mean ``-inf`` / ``+inf``.
    nmax_iter, tol_norm, armijo_c, cut_factor, alpha_init, alpha_min, sigma, strong, enable_cg
        Solver parameters, see ``SolverConfig``.
    verbose : bool
        Show a progress bar and print a final report.
    config : SolverConfig, optional
        Replaces all the solver parameters above when given.
    observer : Callable, optional
        Called with an ``IterationSnapshot`` after every iteration. Replaces
        the progress bar.

    Returns
    -------
    SolveResult
        Final point, initial and final objective, convergence flag, history
        and terminal status.

    Raises
    ------
    ValidationError
        If a parameter or the starting point violates its precondition. No
        function evaluation happens in that case.
    """
    if config is None:
        config = SolverConfig(
            nmax_iter=nmax_iter,
            tol_norm=tol_norm,
            armijo_c=armijo_c,
            cut_factor=cut_factor,
            alpha_init=alpha_init,
            alpha_min=alpha_min,
            sigma=sigma,
            strong=strong,
            enable_cg=enable_cg,
            verbose=verbose,
        )

    loop = OptimizerLoop(fn, grad_fn, x0, lower, upper, config, observer)

    reporter = None
    if observer is None and config.verbose:
        reporter = ProgressReporter(total=config.nmax_iter)
        loop.observer = reporter

    start_time = perf_counter()
    try:
        result = loop.run()
    finally:
        if reporter is not None:
            reporter.close()
    elapsed = perf_counter() - start_time

    if config.verbose:
        print_summary(loop, elapsed)

    return result

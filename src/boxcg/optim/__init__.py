"""
Bound-constrained optimization engine.

This package provides:
- Box projection of trial steps with active-set bookkeeping
- Projected backtracking line search (Armijo + one-sided Wolfe curvature)
- Steepest descent and projected conjugate gradient direction strategies
- First order (KKT) stationarity test for box constraints
- The iteration loop and the ``solve`` entry point

Example usage:
    >>> from boxcg.optim import solve
    >>>
    >>> result = solve(f, df, x0, lower=[0.0, 0.0], upper=[2.0, 4.0], enable_cg=True)
    >>> result.x, result.converged
"""

from .config import (
    SolverConfig,
    ValidationError,
    check_inputs,
    dump_default_config,
    expand_bounds,
    load_config,
)
from .convergence import Stationarity, first_order_conditions
from .direction import (
    DIRECTION_NAMES,
    ConjugateState,
    DirectionStrategy,
    conjugate_direction,
    get_direction_strategy,
    projected_conjugate_gradient,
    steepest_descent,
)
from .linesearch import LineSearchResult, armijo_projected
from .projection import ProjectedStep, project
from .report import IterationSnapshot, ProgressReporter, null_observer, print_summary
from .solve import OptimizerLoop, SolveResult, solve
from .state import History, IterateState, Status

__all__ = [
    "DIRECTION_NAMES",
    "ConjugateState",
    "DirectionStrategy",
    "History",
    "IterateState",
    "IterationSnapshot",
    "LineSearchResult",
    "OptimizerLoop",
    "ProgressReporter",
    "ProjectedStep",
    "SolveResult",
    "SolverConfig",
    "Stationarity",
    "Status",
    "ValidationError",
    "armijo_projected",
    "check_inputs",
    "conjugate_direction",
    "dump_default_config",
    "expand_bounds",
    "first_order_conditions",
    "get_direction_strategy",
    "load_config",
    "null_observer",
    "print_summary",
    "project",
    "projected_conjugate_gradient",
    "solve",
    "steepest_descent",
]

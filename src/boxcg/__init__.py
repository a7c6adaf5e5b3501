"""Box-constrained projected steepest descent / conjugate gradient solver."""

from importlib import metadata

import jax

# The stopping tolerances assume double precision
jax.config.update("jax_enable_x64", True)

from . import problems  # noqa: E402
from .optim import (  # noqa: E402
    History,
    IterationSnapshot,
    OptimizerLoop,
    SolveResult,
    SolverConfig,
    Status,
    ValidationError,
    load_config,
    solve,
)

__all__ = [
    "History",
    "IterationSnapshot",
    "OptimizerLoop",
    "SolveResult",
    "SolverConfig",
    "Status",
    "ValidationError",
    "load_config",
    "problems",
    "solve",
]


def __getattr__(name: str) -> str:
    """Expose package metadata attributes lazily."""
    if name == "__version__":
        try:
            return metadata.version("boxcg")
        except metadata.PackageNotFoundError:
            return "unknown"
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

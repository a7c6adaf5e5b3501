from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Optional, Union

import equinox as eqx
import jax.numpy as jnp
import numpy as np
import yaml
from jaxtyping import Array, ArrayLike, Float


class ValidationError(ValueError):
    """Raised when the solver inputs violate a precondition.

    Raised before the objective is evaluated for the first time, so a rejected
    call performs no work.
    """


class SolverConfig(eqx.Module):
    """Parameters of the projected steepest-descent / CG solver.

    Attributes
    ----------
    nmax_iter : int
        Maximum number of iterations, > 0.
    tol_norm : float
        Relative tolerance on the free-set gradient norm, in (0, 1). The target
        is ``tol_norm * (1 + |f|)``.
    armijo_c : float
        Sufficient decrease factor of the Armijo condition, in (0, 0.5).
    cut_factor : float
        Step reduction factor of the backtracking, in (0, 1).
    alpha_init : float
        Initial step length along the normalized direction, > 0.
    alpha_min : float
        Step floor below which the line search gives up, in (0, alpha_init).
    sigma : float
        Curvature factor of the Wolfe condition, in [armijo_c, 1).
    strong : bool
        Whether the curvature condition is enforced by the line search.
    enable_cg : bool
        Whether the projected conjugate-gradient direction is attempted.
    verbose : bool
        Show a progress bar and a final report.
    """

    nmax_iter: int = 100
    tol_norm: float = 1e-6
    armijo_c: float = 0.1
    cut_factor: float = 0.5
    alpha_init: float = 10.0
    alpha_min: float = 1e-12
    sigma: float = 0.95
    strong: bool = True
    enable_cg: bool = False
    verbose: bool = True

    def __check_init__(self) -> None:
        if self.nmax_iter <= 0:
            raise ValidationError("nmax_iter must be larger than zero")
        if not 0.0 < self.tol_norm < 1.0:
            raise ValidationError("tol_norm must be in (0,1)")
        if not 0.0 < self.armijo_c < 0.5:
            raise ValidationError("armijo_c must be in (0,0.5)")
        if not 0.0 < self.cut_factor < 1.0:
            raise ValidationError("cut_factor must be in (0,1)")
        if not self.alpha_init > 0.0:
            raise ValidationError("alpha_init must be larger than zero")
        if not 0.0 < self.alpha_min < self.alpha_init:
            raise ValidationError("alpha_min must be in (0,alpha_init)")
        if not self.armijo_c <= self.sigma < 1.0:
            raise ValidationError("sigma must be in [armijo_c,1)")

    def to_dict(self) -> dict[str, Any]:
        return {field.name: getattr(self, field.name) for field in dataclasses.fields(self)}


_FIELD_TYPES: dict[str, type] = {
    "nmax_iter": int,
    "tol_norm": float,
    "armijo_c": float,
    "cut_factor": float,
    "alpha_init": float,
    "alpha_min": float,
    "sigma": float,
    "strong": bool,
    "enable_cg": bool,
    "verbose": bool,
}


def expand_bounds(
    n: int,
    lower: Optional[ArrayLike] = None,
    upper: Optional[ArrayLike] = None,
) -> tuple[Float[Array, " n"], Float[Array, " n"]]:
    """Turn omitted or empty bounds into ``-inf`` / ``+inf`` vectors of length ``n``."""
    if lower is None or np.size(lower) == 0:
        lo = jnp.full(n, -jnp.inf)
    else:
        lo = jnp.array(lower, dtype=jnp.float64).reshape(-1)
    if upper is None or np.size(upper) == 0:
        up = jnp.full(n, jnp.inf)
    else:
        up = jnp.array(upper, dtype=jnp.float64).reshape(-1)
    return lo, up


def check_inputs(
    x0: Float[Array, " n"],
    lower: Float[Array, " n"],
    upper: Float[Array, " n"],
) -> None:
    """Check that the starting point is consistent with the bounds.

    Args:
        x0: Starting point.
        lower: Lower bounds (already expanded).
        upper: Upper bounds (already expanded).

    Raises:
        ValidationError: If the lengths differ or ``x0`` lies outside the box.
    """
    if not (x0.shape[0] == lower.shape[0] == upper.shape[0]):
        raise ValidationError(
            f"length of lower ({lower.shape[0]}), upper ({upper.shape[0]}) "
            f"and x0 ({x0.shape[0]}) must be the same"
        )
    if not bool(jnp.all((lower <= x0) & (x0 <= upper))):
        raise ValidationError("x0 must be inside the bounds lower and upper")


def load_config(filepath: Union[str, Path], **overrides: Any) -> SolverConfig:
    """Load a solver configuration from a YAML file.

    Args:
        filepath: Path to a YAML mapping whose keys are ``SolverConfig`` fields.
            Missing keys take their default value.
        **overrides: Field values taking precedence over the file.

    Returns:
        The validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValidationError: If the file has unknown keys, values of the wrong type,
            or values out of range.

    Example:
        >>> config = load_config("solver.yaml", enable_cg=True)
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Solver configuration file not found: {filepath}")

    with open(filepath) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValidationError(f"Solver configuration must be a mapping, got {type(raw).__name__}")

    raw.update(overrides)
    unknown = sorted(set(raw) - set(_FIELD_TYPES))
    if unknown:
        raise ValidationError(
            f"Unknown solver configuration keys: {unknown}. Known keys: {list(_FIELD_TYPES)}"
        )

    values: dict[str, Any] = {}
    for key, value in raw.items():
        kind = _FIELD_TYPES[key]
        if kind is bool:
            if not isinstance(value, bool):
                raise ValidationError(f"{key} must be a boolean, got {value!r}")
            values[key] = value
            continue
        # PyYAML reads exponents without a dot (1e-6) as strings
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{key} must be a {kind.__name__}, got {value!r}") from e
        if kind is int and not number.is_integer():
            raise ValidationError(f"{key} must be an integer, got {value!r}")
        values[key] = kind(number)

    return SolverConfig(**values)


def dump_default_config(output_path: Union[str, Path]) -> None:
    """Write the default solver configuration to a YAML file.

    The file is a template that can be edited and passed to ``load_config``.

    Args:
        output_path: Destination of the YAML file.
    """
    with open(output_path, "w") as f:
        yaml.safe_dump(SolverConfig().to_dict(), f, sort_keys=False)

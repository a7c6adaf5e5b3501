#!/usr/bin/env python3
"""
Benchmark the box-constrained solver on reference problems.

Runs steepest descent and projected conjugate gradient from randomized
feasible starting points on each selected problem and reports the distance
to the known minimizer, the number of iterations and the terminal status.

Usage:
    boxcg-bench -p quadratic booth -n 5 --seed 0
    boxcg-bench -p beale -m 5000 --methods cg
    boxcg-bench --config solver.yaml -p all
    boxcg-bench --dump-config solver.yaml

Output:
    One line per run, then a per-method tally of converged runs.

Starting points come from each problem's start region (see
``boxcg.problems.get_problem``), where both strategies are expected to reach
the known minimizer.
"""

import argparse
from time import perf_counter
from typing import Optional

import jax
import jax.numpy as jnp

from boxcg.logging_utils import error, info, success, warning
from boxcg.optim import SolverConfig, dump_default_config, load_config, solve
from boxcg.problems import PROBLEM_NAMES, get_problem


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the benchmark tool.

    Parameters
    ----------
    argv : list of str, optional
        Arguments to parse instead of ``sys.argv[1:]``.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Benchmark projected steepest descent / CG on reference problems",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-p",
        "--problems",
        type=str,
        nargs="+",
        default=["all"],
        choices=PROBLEM_NAMES + ["all"],
        help="Problems to run (default: all)",
    )
    parser.add_argument(
        "-n",
        "--n-starts",
        type=int,
        default=3,
        help="Number of random starting points per problem",
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed of the starting points")
    parser.add_argument(
        "-m",
        "--max-iterations",
        type=int,
        default=None,
        help="Override nmax_iter of the solver configuration",
    )
    parser.add_argument(
        "--methods",
        type=str,
        nargs="+",
        default=["steepest", "cg"],
        choices=["steepest", "cg"],
        help="Direction strategies to compare",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="YAML solver configuration (see --dump-config)",
    )
    parser.add_argument(
        "--dump-config",
        type=str,
        default=None,
        help="Write the default solver configuration to this YAML file and exit",
    )
    parser.add_argument(
        "--rtol",
        type=float,
        default=1e-2,
        help="Relative tolerance on the distance to the known minimizer",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show the solver progress and final report"
    )
    return parser.parse_args(argv)


def run_problem(
    name: str, config: SolverConfig, key: jax.Array, n_starts: int, rtol: float
) -> list[bool]:
    """Solve one problem from ``n_starts`` random starts.

    Returns:
        For each start, whether the final point is within ``rtol`` of the
        known minimizer.
    """
    problem = get_problem(name)
    outcomes = []
    for start_key in jax.random.split(key, n_starts):
        x0 = problem.sample_start(start_key)
        start_time = perf_counter()
        result = solve(problem.fn, problem.grad, x0, problem.lower, problem.upper, config=config)
        elapsed = perf_counter() - start_time

        distance = float(jnp.linalg.norm(result.x - problem.solution))
        close = distance <= rtol * float(jnp.linalg.norm(problem.solution))
        outcomes.append(close)

        message = (
            f"{name:<14} x0={[round(float(v), 3) for v in x0]} "
            f"x={[round(float(v), 6) for v in result.x]} "
            f"f={result.f_final:.3e} iters={result.iterations} "
            f"status={result.status.value} time={elapsed:.2f}s"
        )
        if close:
            info(message)
        else:
            warning(message)
    return outcomes


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)

    if args.dump_config is not None:
        dump_default_config(args.dump_config)
        success(f"Default solver configuration saved to: {args.dump_config}")
        info("You can now customize this file and use it with --config.")
        return

    overrides = {"verbose": args.verbose}
    if args.max_iterations is not None:
        overrides["nmax_iter"] = args.max_iterations

    if args.config is not None:
        info(f"Loading solver configuration from: {args.config}")
        base = load_config(args.config, **overrides)
    else:
        base = SolverConfig(**overrides)

    names = PROBLEM_NAMES if "all" in args.problems else args.problems
    key = jax.random.key(args.seed)

    failures = 0
    for method in args.methods:
        config = SolverConfig(**{**base.to_dict(), "enable_cg": method == "cg"})
        info(f"Method: {method} (nmax_iter={config.nmax_iter})")
        outcomes = []
        for index, name in enumerate(names):
            # Same starting points for every method
            subkey = jax.random.fold_in(key, index)
            outcomes.extend(run_problem(name, config, subkey, args.n_starts, args.rtol))
        n_close = sum(outcomes)
        if n_close == len(outcomes):
            success(f"{method}: {n_close}/{len(outcomes)} runs reached the known minimizer")
        else:
            error(f"{method}: {n_close}/{len(outcomes)} runs reached the known minimizer")
            failures += len(outcomes) - n_close

    if failures:
        raise SystemExit(1)


if __name__ == "__main__":
    main()

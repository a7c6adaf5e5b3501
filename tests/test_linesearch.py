"""Tests for the projected backtracking line search."""

import jax.numpy as jnp
import numpy as np

from boxcg.optim import SolverConfig, armijo_projected
from boxcg.problems import quadratic, quadratic_grad

UNBOUNDED = (jnp.full(2, -jnp.inf), jnp.full(2, jnp.inf))


def _search(x0, direction, lower, upper, constrained, config=None):
    x0 = jnp.asarray(x0, dtype=jnp.float64)
    config = config if config is not None else SolverConfig(verbose=False)
    return armijo_projected(
        quadratic,
        quadratic_grad,
        x0,
        float(quadratic(x0)),
        quadratic_grad(x0),
        jnp.asarray(direction, dtype=jnp.float64),
        lower,
        upper,
        constrained,
        config,
    )


class TestArmijoProjected:
    def test_accepted_step_satisfies_armijo_and_curvature(self):
        config = SolverConfig(verbose=False)
        x0 = jnp.array([0.0, 0.0])
        f0 = float(quadratic(x0))
        grad0 = quadratic_grad(x0)

        result = _search(x0, -grad0, *UNBOUNDED, constrained=False)

        assert result.success
        dx = result.x - x0
        slope = float(jnp.dot(grad0, dx))
        assert slope < 0.0
        assert result.value <= f0 + config.armijo_c * slope
        assert float(jnp.dot(result.grad, dx)) >= config.sigma * slope
        np.testing.assert_allclose(result.grad, quadratic_grad(result.x))

    def test_first_acceptable_step_is_the_largest_halving(self):
        # Distance to the minimizer is sqrt(34), the acceptable window is [0.05, 1.8] of it
        result = _search([0.0, 0.0], [3.0, 5.0], *UNBOUNDED, constrained=False)

        assert result.success
        assert result.step == 10.0
        np.testing.assert_allclose(jnp.linalg.norm(result.direction), 1.0)

    def test_uphill_direction_fails_and_keeps_start(self):
        x0 = jnp.array([1.0, 1.0])
        grad0 = quadratic_grad(x0)

        result = _search(x0, grad0, *UNBOUNDED, constrained=False)

        assert not result.success
        np.testing.assert_array_equal(result.x, x0)
        assert result.value == float(quadratic(x0))
        np.testing.assert_array_equal(result.grad, grad0)
        assert result.step <= 1e-12

    def test_degenerate_projected_direction_resets_to_steepest_descent(self):
        # The first coordinate sits on its lower bound and d pushes into it
        x0 = jnp.array([0.0, 1.0])
        lower = jnp.array([0.0, 0.0])
        upper = jnp.array([10.0, 10.0])

        result = _search(x0, [-1.0, -1e-5], lower, upper, constrained=True)

        assert result.success
        np.testing.assert_allclose(result.direction, -quadratic_grad(x0))
        assert result.value < float(quadratic(x0))
        assert bool(jnp.all((lower <= result.x) & (result.x <= upper)))

    def test_unconstrained_problem_never_resets(self):
        x0 = jnp.array([0.0, 1.0])

        result = _search(x0, [-1.0, -1e-5], *UNBOUNDED, constrained=False)

        np.testing.assert_allclose(result.direction, [-1.0, -1e-5], rtol=1e-9)

    def test_trial_past_bound_is_projected(self):
        x0 = jnp.array([0.0, 0.0])
        lower = jnp.array([0.0, 0.0])
        upper = jnp.array([2.0, 4.0])

        result = _search(x0, -quadratic_grad(x0), lower, upper, constrained=True)

        assert result.success
        np.testing.assert_array_equal(result.x, upper)
        np.testing.assert_array_equal(result.active_upper, [True, True])
        assert not bool(jnp.any(result.active_lower))

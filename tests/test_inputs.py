"""Tests for the validation of solver inputs."""

import numpy as np
import pytest

from boxcg.optim import SolverConfig, ValidationError, expand_bounds, solve
from boxcg.problems import quadratic_grad


class CountingObjective:
    def __init__(self):
        self.calls = 0

    def __call__(self, x):
        self.calls += 1
        return float(((x[0] - 3.0) ** 2 + (x[1] - 5.0) ** 2))


@pytest.mark.parametrize(
    "params",
    [
        {"nmax_iter": 0},
        {"tol_norm": 0.0},
        {"tol_norm": 1.0},
        {"armijo_c": 0.0},
        {"armijo_c": 0.5},
        {"cut_factor": 0.0},
        {"cut_factor": 1.0},
        {"alpha_init": 0.0},
        {"alpha_min": 0.0},
        {"alpha_min": 10.0},
        {"sigma": 0.05},
        {"sigma": 1.0},
    ],
)
def test_invalid_parameters_are_rejected_before_evaluation(params):
    fn = CountingObjective()

    with pytest.raises(ValidationError):
        solve(fn, quadratic_grad, [0.0, 0.0], verbose=False, **params)

    assert fn.calls == 0


@pytest.mark.parametrize(
    "x0, lower, upper",
    [
        ([0.0, 0.0], [0.0], [1.0, 1.0]),
        ([0.0, 0.0], [0.0, 0.0], [1.0, 1.0, 1.0]),
        ([0.0, 0.0, 0.0], [0.0, 0.0], [1.0, 1.0]),
        ([-0.1, 0.5], [0.0, 0.0], [1.0, 1.0]),
        ([0.5, 1.1], [0.0, 0.0], [1.0, 1.0]),
        ([0.5, 0.5], [1.0, 0.0], [0.0, 1.0]),
    ],
)
def test_inconsistent_bounds_are_rejected_before_evaluation(x0, lower, upper):
    fn = CountingObjective()

    with pytest.raises(ValidationError):
        solve(fn, quadratic_grad, x0, lower, upper, verbose=False)

    assert fn.calls == 0


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError, match="nmax_iter"):
        SolverConfig(nmax_iter=-1)


def test_sigma_may_equal_armijo_c():
    config = SolverConfig(armijo_c=0.2, sigma=0.2)
    assert config.sigma == config.armijo_c


def test_start_on_the_bounds_is_accepted():
    fn = CountingObjective()
    result = solve(fn, quadratic_grad, [0.0, 4.0], [0.0, 0.0], [2.0, 4.0], verbose=False)

    assert fn.calls > 0
    np.testing.assert_allclose(result.x, [2.0, 4.0])


class TestExpandBounds:
    def test_missing_bounds_are_infinite(self):
        lower, upper = expand_bounds(3)

        assert np.all(np.isneginf(lower))
        assert np.all(np.isposinf(upper))
        assert lower.shape == upper.shape == (3,)

    def test_empty_bounds_are_infinite(self):
        lower, upper = expand_bounds(2, [], np.array([]))

        assert np.all(np.isneginf(lower))
        assert np.all(np.isposinf(upper))

    def test_given_bounds_are_kept(self):
        lower, upper = expand_bounds(2, [0, 1], None)

        np.testing.assert_array_equal(lower, [0.0, 1.0])
        assert np.all(np.isposinf(upper))

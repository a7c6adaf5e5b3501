"""Tests for the steepest descent and projected conjugate gradient directions."""

import jax.numpy as jnp
import numpy as np
import pytest

from boxcg.optim import (
    ConjugateState,
    IterateState,
    conjugate_direction,
    get_direction_strategy,
    projected_conjugate_gradient,
    steepest_descent,
)
from boxcg.optim.state import initial_state


def _state(
    grad,
    last_grad,
    last_direction,
    active=(False, False),
    alpha_eff=(0.0, 0.0),
    free=None,
    last_free=None,
):
    active = jnp.array(active)
    free = ~active if free is None else jnp.array(free)
    last_free = free if last_free is None else jnp.array(last_free)
    x = jnp.zeros(2)
    return IterateState(
        x=x,
        grad=jnp.array(grad, dtype=jnp.float64),
        value=0.0,
        last_x=x,
        last_grad=jnp.array(last_grad, dtype=jnp.float64),
        last_direction=jnp.array(last_direction, dtype=jnp.float64),
        active=active,
        active_lower=active,
        active_upper=jnp.zeros(2, dtype=bool),
        free=free,
        last_free=last_free,
        alpha_eff=jnp.array(alpha_eff, dtype=jnp.float64),
    )


class TestConjugateDirection:
    def test_no_active_coordinates(self):
        d, accepted, beta = conjugate_direction(
            jnp.array([1.0, 2.0]),
            jnp.array([0.0, 3.0]),
            jnp.array([-1.0, 0.0]),
            jnp.zeros(2, dtype=bool),
            jnp.zeros(2),
        )

        assert bool(accepted)
        np.testing.assert_allclose(beta, 1.0)
        np.testing.assert_allclose(d, [-2.0, -2.0])

    def test_previously_active_coordinates_correct_beta(self):
        d, accepted, beta = conjugate_direction(
            jnp.array([1.0, 2.0]),
            jnp.array([0.0, 3.0]),
            jnp.array([-1.0, 0.0]),
            jnp.array([True, False]),
            jnp.array([0.5, 0.0]),
        )

        assert bool(accepted)
        np.testing.assert_allclose(beta, 1.0 / 3.0)
        np.testing.assert_allclose(d, [-4.0 / 3.0, -2.0])

    def test_negative_beta_is_rejected(self):
        grad = jnp.array([1.0, 1.0])
        d, accepted, beta = conjugate_direction(
            grad, jnp.zeros(2), jnp.array([-1.0, 0.0]), jnp.zeros(2, dtype=bool), jnp.zeros(2)
        )

        assert not bool(accepted)
        assert float(beta) == 0.0
        np.testing.assert_array_equal(d, -grad)

    def test_infinite_beta_is_rejected(self):
        # y is orthogonal to the last direction
        grad = jnp.array([0.0, 1.0])
        d, accepted, beta = conjugate_direction(
            grad,
            jnp.array([1.0, 0.0]),
            jnp.array([1.0, 1.0]),
            jnp.zeros(2, dtype=bool),
            jnp.zeros(2),
        )

        assert not bool(accepted)
        assert float(beta) == 0.0
        np.testing.assert_array_equal(d, -grad)

    def test_vanishing_direction_is_rejected(self):
        grad = jnp.array([1.0, 0.0])
        d, accepted, _ = conjugate_direction(
            grad, jnp.zeros(2), jnp.array([1.0, 0.0]), jnp.zeros(2, dtype=bool), jnp.zeros(2)
        )

        assert not bool(accepted)
        np.testing.assert_array_equal(d, -grad)


class TestSteepestDescent:
    def test_always_negative_gradient(self):
        strategy = steepest_descent()
        state = _state([1.0, 2.0], [0.0, 3.0], [-1.0, 0.0])

        update = strategy.update(state, ConjugateState(3, True), 5)

        np.testing.assert_array_equal(update.direction, [-1.0, -2.0])
        assert not update.cg_used
        assert update.conjugate == ConjugateState(0, True)


class TestProjectedConjugateGradient:
    def test_first_iteration_uses_steepest_descent(self):
        strategy = projected_conjugate_gradient()
        state = _state([1.0, 2.0], [0.0, 3.0], [-1.0, 0.0])

        update = strategy.update(state, strategy.init(), 1)

        np.testing.assert_array_equal(update.direction, [-1.0, -2.0])
        assert not update.cg_used

    def test_accepted_direction_counts(self):
        strategy = projected_conjugate_gradient()
        state = _state([1.0, 2.0], [0.0, 3.0], [-1.0, 0.0])

        update = strategy.update(state, strategy.init(), 2)

        assert update.cg_used
        np.testing.assert_allclose(update.direction, [-2.0, -2.0])
        assert update.conjugate == ConjugateState(1, True)

    def test_changed_free_set_restarts(self):
        strategy = projected_conjugate_gradient()
        state = _state(
            [1.0, 2.0],
            [0.0, 3.0],
            [-1.0, 0.0],
            free=(True, True),
            last_free=(False, True),
        )

        update = strategy.update(state, ConjugateState(1, True), 3)

        np.testing.assert_array_equal(update.direction, [-1.0, -2.0])
        assert not update.cg_used
        assert update.conjugate == ConjugateState(0, True)

    def test_too_many_conjugate_steps_restart(self):
        strategy = projected_conjugate_gradient()
        state = _state([1.0, 2.0], [0.0, 3.0], [-1.0, 0.0])

        update = strategy.update(state, ConjugateState(3, True), 5)

        np.testing.assert_array_equal(update.direction, [-1.0, -2.0])
        assert update.conjugate.counter == 0

    def test_rejected_direction_restarts(self):
        strategy = projected_conjugate_gradient()
        state = _state([1.0, 1.0], [0.0, 0.0], [-1.0, 0.0])

        update = strategy.update(state, ConjugateState(1, True), 3)

        np.testing.assert_array_equal(update.direction, [-1.0, -1.0])
        assert not update.cg_used
        assert update.conjugate == ConjugateState(0, True)


def test_get_direction_strategy():
    assert isinstance(get_direction_strategy("steepest_descent").init(), ConjugateState)
    assert isinstance(get_direction_strategy("projected_cg").init(), ConjugateState)
    with pytest.raises(ValueError, match="Unknown direction strategy"):
        get_direction_strategy("newton")


def test_initial_sets_allow_conjugate_at_second_iteration():
    grad = jnp.array([1.0, 2.0])
    state = initial_state(jnp.zeros(2), 0.0, grad)._replace(
        last_grad=jnp.array([0.0, 3.0]), last_direction=jnp.array([-1.0, 0.0])
    )
    strategy = projected_conjugate_gradient()

    update = strategy.update(state, strategy.init(), 2)

    np.testing.assert_array_equal(state.free, state.last_free)
    assert update.cg_used
    np.testing.assert_allclose(update.direction, [-2.0, -2.0])

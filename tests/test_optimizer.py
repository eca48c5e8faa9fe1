"""
Tests for the sample-based trajectory optimizer.
"""

import numpy as np
import pytest

from control.policy import Uniform
from data.formats.data_format import Actuation
from trajectory import optimizer


def _line_problem(steering_band, depth=5):
    """One-dimensional problem: state moves by the steering value, higher is better."""
    return optimizer.define_problem(
        policy=lambda state: (Uniform(*steering_band), Uniform(0.0, 0.0)),
        predict=lambda state, actuation: state + actuation.steering,
        value=lambda state: state,
        initial_state=0.0,
        depth=depth,
    )


def test_plan_shape_matches_depth():
    solution = optimizer.figure(_line_problem((0.0, 1.0), depth=7), max_seconds=0.0, min_samples=3)
    plan = optimizer.sample_plan(solution)
    assert len(plan.actuations) == 7
    assert len(plan.states) == 8
    assert plan.states[0] == 0.0


def test_never_worse_than_null_action():
    """Policy only proposes harmful actions, so the null action wins."""
    solution = optimizer.figure(_line_problem((-5.0, -4.0)), max_seconds=0.0, min_samples=20)
    plan = optimizer.sample_plan(solution)
    assert all(a == optimizer.NULL_ACTUATION for a in plan.actuations)
    assert optimizer.expected_value(solution) == pytest.approx(0.0)


def test_finds_improving_plan():
    solution = optimizer.figure(_line_problem((0.5, 1.0)), max_seconds=0.0, min_samples=20,
                                rng=np.random.default_rng(1))
    plan = optimizer.sample_plan(solution)
    assert 0.5 <= plan.actuations[0].steering <= 1.0
    assert optimizer.expected_value(solution) > 0.0


def test_min_samples_runs_even_without_budget():
    solution = optimizer.figure(_line_problem((0.0, 1.0)), max_seconds=0.0, min_samples=5)
    assert solution.n_samples == 5


def test_search_stops_when_budget_spent():
    ticks = iter([0.0, 0.05, 0.09, 0.11, 0.2])
    solution = optimizer.figure(_line_problem((0.0, 1.0)), max_seconds=0.1,
                                clock=lambda: next(ticks))
    # Clock checks at 0.05 and 0.09 allow more samples; 0.11 stops the search
    assert solution.n_samples == 3
    assert solution.elapsed == pytest.approx(0.2)


def test_seeded_search_is_repeatable():
    problem = _line_problem((0.0, 1.0))
    first = optimizer.figure(problem, max_seconds=0.0, min_samples=10, rng=np.random.default_rng(7))
    second = optimizer.figure(problem, max_seconds=0.0, min_samples=10, rng=np.random.default_rng(7))
    assert optimizer.sample_plan(first).actuations == optimizer.sample_plan(second).actuations


def test_depth_must_be_positive():
    with pytest.raises(ValueError):
        optimizer.define_problem(lambda s: None, lambda s, a: s, lambda s: 0.0, 0.0, depth=0)


def test_null_actuation_is_zero():
    assert optimizer.NULL_ACTUATION == Actuation(steering=0.0, throttle=0.0)

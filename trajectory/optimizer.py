"""Time-budgeted sample-based trajectory optimizer.

Rolls out candidate actuation sequences drawn from the problem's policy,
forward-simulates them with the problem's predictor, scores each by the
mean value of its predicted states, and keeps the best.  The null action
(zero steering, zero throttle) is always scored first, so a solution
always holds a plan and that plan is never worse than doing nothing.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from control.policy import sample
from data.formats.data_format import Actuation, Plan, VehicleState

logger = logging.getLogger(__name__)

NULL_ACTUATION = Actuation(steering=0.0, throttle=0.0)


@dataclass
class Problem:
    """Planning problem definition."""
    policy: Callable[[VehicleState], Tuple]
    predict: Callable[[VehicleState, Actuation], VehicleState]
    value: Callable[[VehicleState], float]
    initial_state: VehicleState
    depth: int


@dataclass
class Solution:
    """Best plan found for a problem."""
    problem: Problem
    plan: Plan
    value: float
    n_samples: int
    elapsed: float


def define_problem(policy, predict, value, initial_state: VehicleState, depth: int) -> Problem:
    """Bundle the pieces of a planning problem."""
    if depth < 1:
        raise ValueError(f"depth must be at least 1, got {depth}")
    return Problem(policy=policy, predict=predict, value=value,
                   initial_state=initial_state, depth=depth)


def _rollout(problem: Problem, choose_actuation) -> Tuple[Plan, float]:
    """Simulate one plan; returns it with the mean value of its predicted states."""
    state = problem.initial_state
    plan = Plan(states=[state], actuations=[])
    total = 0.0
    for _ in range(problem.depth):
        actuation = choose_actuation(state)
        state = problem.predict(state, actuation)
        plan.actuations.append(actuation)
        plan.states.append(state)
        total += problem.value(state)
    return plan, total / problem.depth


def figure(problem: Problem, max_seconds: float, min_samples: int = 1,
           rng: Optional[np.random.Generator] = None,
           clock: Callable[[], float] = time.monotonic) -> Solution:
    """
    Search for a good plan within a wall-clock budget.

    Args:
        problem: Problem from define_problem
        max_seconds: Wall-clock budget; the search stops sampling once spent
        min_samples: Policy rollouts to run even if the budget is spent
        rng: Random generator (seed it for repeatable plans)
        clock: Time source in seconds

    Returns:
        Solution with the best plan found
    """
    if rng is None:
        rng = np.random.default_rng()
    start = clock()
    deadline = start + max_seconds

    def from_policy(state: VehicleState) -> Actuation:
        steering_dist, throttle_dist = problem.policy(state)
        return Actuation(steering=sample(steering_dist, rng), throttle=sample(throttle_dist, rng))

    best_plan, best_value = _rollout(problem, lambda state: NULL_ACTUATION)
    n_samples = 0
    while n_samples < min_samples or clock() < deadline:
        plan, plan_value = _rollout(problem, from_policy)
        n_samples += 1
        if plan_value > best_value:
            best_plan, best_value = plan, plan_value

    elapsed = clock() - start
    logger.debug("Optimizer: %d rollouts in %.3fs, best value %.3f", n_samples, elapsed, best_value)
    return Solution(problem=problem, plan=best_plan, value=best_value,
                    n_samples=n_samples, elapsed=elapsed)


def sample_plan(solution: Solution) -> Plan:
    """Plan chosen by the solution."""
    return solution.plan


def expected_value(solution: Solution) -> float:
    """Mean state value of the chosen plan."""
    return solution.value

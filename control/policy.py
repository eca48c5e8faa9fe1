"""
Heuristic policy that seeds the MPC search.

The policy does not pick an actuation. It returns, for steering and throttle,
a distribution describing where the optimizer should look.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from control.frame import constrain
from control.pid_controller import PIDParameters, PIDState, pid_actuation
from data.formats.data_format import VehicleState


STEERING_PID_PARAMETERS = PIDParameters(
    proportional_factor=0.12,
    derivative_factor=1.8,
    integral_factor=0.005,
)


@dataclass(frozen=True)
class Uniform:
    """Uniform distribution over [low, high]."""
    low: float
    high: float
    kind: str = "uniform"

    @property
    def center(self) -> float:
        return 0.5 * (self.low + self.high)


def sample(dist, rng: np.random.Generator) -> float:
    """Draw one value from a policy distribution."""
    if dist.kind == "uniform":
        return float(rng.uniform(dist.low, dist.high))
    raise TypeError(f"Unsupported distribution kind: {dist.kind!r}")


def pd_steering_estimate(state: VehicleState,
                         params: PIDParameters = STEERING_PID_PARAMETERS) -> float:
    """Steering angle recommended by a PD controller on lateral offset."""
    # Lateral rate is normalized by total speed; 0.1 keeps a standstill finite
    normalized_vd = state.vd / math.sqrt(state.vd * state.vd + state.vs * state.vs + 0.1)
    pid = PIDState(
        proportional_error=state.d,
        derivative_error=normalized_vd,
        integral_error=0.0,
    )
    return constrain(pid_actuation(pid, params), -1.0, 1.0)


class HeuristicPolicy:
    """
    PD steering plus bang-bang throttle, each widened into a uniform band.
    """

    def __init__(self, pid_parameters: PIDParameters = STEERING_PID_PARAMETERS,
                 max_speed: float = 70.0, steering_uncertainty: float = 0.2,
                 throttle_uncertainty: float = 0.05, cruise_throttle: float = 0.95,
                 coast_throttle: float = 0.05):
        """
        Initialize heuristic policy.

        Args:
            pid_parameters: Steering PD gains
            max_speed: Target speed; throttle backs off at or above it
            steering_uncertainty: Half-width of the steering band (0.01 to 1.0)
            throttle_uncertainty: Half-width of the throttle band
            cruise_throttle: Throttle below max_speed
            coast_throttle: Throttle at or above max_speed
        """
        self.pid_parameters = pid_parameters
        self.max_speed = max_speed
        self.steering_uncertainty = steering_uncertainty
        self.throttle_uncertainty = throttle_uncertainty
        self.cruise_throttle = cruise_throttle
        self.coast_throttle = coast_throttle

    def __call__(self, state: VehicleState) -> Tuple[Uniform, Uniform]:
        steering = pd_steering_estimate(state, self.pid_parameters)
        throttle = self.cruise_throttle if state.v < self.max_speed else self.coast_throttle
        return (
            Uniform(steering - self.steering_uncertainty, steering + self.steering_uncertainty),
            Uniform(throttle - self.throttle_uncertainty, throttle + self.throttle_uncertainty),
        )


def policy(state: VehicleState) -> Tuple[Uniform, Uniform]:
    """Default heuristic policy."""
    return _DEFAULT_POLICY(state)


_DEFAULT_POLICY = HeuristicPolicy()

"""
Reward (value) function for planned states.
"""

from dataclasses import dataclass

from data.formats.data_format import VehicleState


@dataclass(frozen=True)
class RewardWeights:
    """Weights of the state value function."""
    progress_weight: float = 1.0        # Per unit of forward speed along the road
    on_road_bonus: float = 10.0
    off_road_penalty: float = -1000.0
    road_half_width: float = 3.0        # |d| at or beyond this is off the road
    center_weight: float = -15.0        # Per unit of distance from center
    lateral_speed_weight: float = -0.2  # Per unit of speed to the right


DEFAULT_REWARD_WEIGHTS = RewardWeights()


def value(state: VehicleState, weights: RewardWeights = DEFAULT_REWARD_WEIGHTS) -> float:
    """
    Measure of how 'good' a state is.

    A plan is chosen to maximize the average of this function across the
    states in the plan.
    """
    distance_from_center = abs(state.d)
    on_road = distance_from_center < weights.road_half_width
    return (weights.progress_weight * state.vs
            + (weights.on_road_bonus if on_road else weights.off_road_penalty)
            + weights.center_weight * distance_from_center
            + weights.lateral_speed_weight * state.vd)

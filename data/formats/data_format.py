"""
Data format definitions for the MPC driver.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class VehicleState:
    """Vehicle state in the working frame plus its road (Frenet) projection.

    (s, d, vs, vd) must always be the projection of (x, y, vx, vy); build new
    states through the dynamics model rather than replacing single fields.
    """
    x: float
    y: float
    psi: float  # Heading (radians)
    v: float    # Speed magnitude
    vx: float
    vy: float
    s: float    # Progress along the road
    d: float    # Offset right of road center (negative is left)
    vs: float   # Rate along the road
    vd: float   # Rate to the right


@dataclass(frozen=True)
class Actuation:
    """Steering/throttle command."""
    steering: float  # -1.0 (full left) to 1.0 (full right)
    throttle: float  # -1.0 (full brake) to 1.0 (full throttle)


@dataclass
class Plan:
    """Predicted states and the actuations that lead to them."""
    states: List[VehicleState] = field(default_factory=list)
    actuations: List[Actuation] = field(default_factory=list)

    def xy(self) -> List[Tuple[float, float]]:
        """Position components of the predicted trajectory."""
        return [(state.x, state.y) for state in self.states]


@dataclass
class ControlResult:
    """Output of one control cycle."""
    steering_angle: float
    throttle: float
    waypoints: List[Tuple[float, float]]  # Vehicle frame
    plan: List[Tuple[float, float]]       # Predicted x/y trajectory
    plan_value: Optional[float] = None
    fallback: bool = False  # True when the safe default actuation was used

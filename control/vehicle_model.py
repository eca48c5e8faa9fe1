"""
Vehicle dynamics model (bicycle model).
Used by the MPC controller to predict future states.
"""

import math

from data.formats.data_format import Actuation, VehicleState


class BicycleModel:
    """
    Kinematic bicycle model with a small slip angle approximation.
    Position is integrated with the previous velocity (explicit Euler).
    """

    def __init__(self, wheelbase: float = 2.67, max_steering_angle_deg: float = 25.0):
        """
        Initialize bicycle model.

        Args:
            wheelbase: Distance from front axle to center of gravity (Lf)
            max_steering_angle_deg: Steering angle at full lock (degrees)
        """
        self.wheelbase = wheelbase
        self.max_steering_angle = math.radians(max_steering_angle_deg)

    def predict(self, state: VehicleState, actuation: Actuation, coord, dt: float) -> VehicleState:
        """
        Advance the state by dt seconds under the given actuation.

        Args:
            state: Current state
            actuation: Steering (-1..1) and throttle (-1..1)
            coord: Road projection providing project(x, y, vx, vy) -> (s, d, vs, vd)
            dt: Time step (seconds, must be positive)

        Returns:
            Next state, with its road projection recomputed
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        steer_radians = actuation.steering * self.max_steering_angle

        x = state.x + state.vx * dt
        y = state.y + state.vy * dt
        # Positive steering turns right, which decreases heading
        psi = state.psi - state.v * dt * steer_radians / self.wheelbase
        v = state.v + actuation.throttle * dt

        vx = v * math.cos(psi)
        vy = v * math.sin(psi)
        s, d, vs, vd = coord.project(x, y, vx, vy)
        return VehicleState(x, y, psi, v, vx, vy, s, d, vs, vd)


def predict(state: VehicleState, actuation: Actuation, coord, dt: float) -> VehicleState:
    """Advance one step using the default model parameters."""
    return _DEFAULT_MODEL.predict(state, actuation, coord, dt)


_DEFAULT_MODEL = BicycleModel()

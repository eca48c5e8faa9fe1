"""
Coordinate conversion from the absolute (map) frame to the vehicle frame.
"""

import math
from typing import List, Optional, Sequence, Tuple


def point_to_vehicle_frame(abs_point: Sequence[float],
                           car_position: Sequence[float],
                           car_heading: float) -> Tuple[float, float]:
    """
    Convert a point from absolute coordinates to the vehicle reference frame.

    The vehicle frame has its origin at the car and its x-axis along the car's
    heading. Distance to the car is preserved.

    Args:
        abs_point: (x, y) in the absolute frame
        car_position: (x, y) of the car in the absolute frame
        car_heading: Car heading in the absolute frame (radians)

    Returns:
        (x, y) in the vehicle frame
    """
    dx = abs_point[0] - car_position[0]
    dy = abs_point[1] - car_position[1]
    distance = math.hypot(dx, dy)
    # atan2(0, 0) is 0.0, so a point on the car maps to the origin
    direction_rel = math.atan2(dy, dx) - car_heading
    return distance * math.cos(direction_rel), distance * math.sin(direction_rel)


def points_to_vehicle_frame(abs_xs: Sequence[float], abs_ys: Sequence[float],
                            car_position: Sequence[float],
                            car_heading: float) -> List[Tuple[float, float]]:
    """Convert parallel lists of x and y to vehicle-frame (x, y) pairs."""
    return [point_to_vehicle_frame((px, py), car_position, car_heading)
            for px, py in zip(abs_xs, abs_ys)]


def constrain(value: float, min_value: Optional[float], max_value: Optional[float]) -> float:
    """
    Clamp value to [min_value, max_value].

    Either bound may be None to leave that side open.
    """
    if min_value is not None and value < min_value:
        return min_value
    if max_value is not None and value > max_value:
        return max_value
    return value

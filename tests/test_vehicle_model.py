"""
Tests for the bicycle dynamics model.
"""

import math

import pytest

from control.vehicle_model import BicycleModel, predict
from data.formats.data_format import Actuation, VehicleState


class StraightRoad:
    """Road along +x; right of the road is -y."""

    def project(self, x, y, vx, vy):
        return x, -y, vx, -vy


def _moving_state(speed=10.0):
    return VehicleState(x=0.0, y=0.0, psi=0.0, v=speed, vx=speed, vy=0.0,
                        s=0.0, d=0.0, vs=speed, vd=0.0)


def test_position_advances_with_previous_velocity():
    state = _moving_state(10.0)
    nxt = predict(state, Actuation(steering=0.0, throttle=1.0), StraightRoad(), 0.1)

    assert nxt.x == pytest.approx(1.0)
    assert nxt.y == pytest.approx(0.0)
    assert nxt.v == pytest.approx(10.1)
    assert nxt.vx == pytest.approx(10.1)
    assert nxt.s == pytest.approx(1.0)
    assert nxt.vs == pytest.approx(10.1)


def test_positive_steering_turns_right():
    state = _moving_state(10.0)
    nxt = predict(state, Actuation(steering=1.0, throttle=0.0), StraightRoad(), 0.1)

    expected_psi = -10.0 * 0.1 * math.radians(25.0) / 2.67
    assert nxt.psi == pytest.approx(expected_psi)
    assert nxt.vy < 0.0
    # Moving toward the right of the road
    assert nxt.vd > 0.0


def test_speed_and_velocity_stay_consistent():
    state = _moving_state(15.0)
    nxt = predict(state, Actuation(steering=-0.4, throttle=-0.5), StraightRoad(), 0.1)
    assert math.hypot(nxt.vx, nxt.vy) == pytest.approx(abs(nxt.v))


def test_predict_is_deterministic():
    state = _moving_state(12.0)
    actuation = Actuation(steering=0.3, throttle=0.7)
    first = predict(state, actuation, StraightRoad(), 0.1)
    second = predict(state, actuation, StraightRoad(), 0.1)
    assert first == second


def test_custom_wheelbase_changes_yaw_rate():
    state = _moving_state(10.0)
    actuation = Actuation(steering=1.0, throttle=0.0)
    short = BicycleModel(wheelbase=1.0).predict(state, actuation, StraightRoad(), 0.1)
    long = BicycleModel(wheelbase=4.0).predict(state, actuation, StraightRoad(), 0.1)
    assert abs(short.psi) > abs(long.psi)


@pytest.mark.parametrize("dt", [0.0, -0.1])
def test_non_positive_dt_rejected(dt):
    with pytest.raises(ValueError):
        predict(_moving_state(), Actuation(0.0, 0.0), StraightRoad(), dt)

"""
Tests for the state value function.
"""

import pytest

from control.reward import RewardWeights, value
from data.formats.data_format import VehicleState


def _state(d=0.0, vs=0.0, vd=0.0):
    return VehicleState(x=0.0, y=0.0, psi=0.0, v=vs, vx=vs, vy=0.0, s=0.0, d=d, vs=vs, vd=vd)


def test_on_road_bonus_just_inside_edge():
    assert value(_state(d=2.99)) == pytest.approx(10.0 - 15.0 * 2.99)


def test_off_road_penalty_just_outside_edge():
    assert value(_state(d=3.01)) == pytest.approx(-1000.0 - 15.0 * 3.01)


def test_road_edge_counts_as_off_road():
    assert value(_state(d=3.0)) == pytest.approx(-1000.0 - 45.0)
    assert value(_state(d=-3.0)) == pytest.approx(-1000.0 - 45.0)


def test_left_and_right_offsets_score_the_same():
    assert value(_state(d=-1.5)) == pytest.approx(value(_state(d=1.5)))


def test_progress_rewarded_and_lateral_speed_penalized():
    assert value(_state(vs=20.0)) == pytest.approx(30.0)
    assert value(_state(vd=5.0)) == pytest.approx(9.0)
    assert value(_state(vd=-5.0)) == pytest.approx(11.0)


def test_custom_weights():
    weights = RewardWeights(road_half_width=5.0, center_weight=-1.0)
    assert value(_state(d=4.0), weights) == pytest.approx(10.0 - 4.0)

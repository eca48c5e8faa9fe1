"""
Tests for configuration loading.
"""

import pytest

from control.mpc_controller import MPCConfig, build_mpc_config
from mpc_stack import load_config, load_mpc_config


def test_default_config_file_matches_defaults():
    config = load_mpc_config()
    assert config == MPCConfig()
    assert config.actuation_period == pytest.approx(0.1)


def test_missing_config_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "missing.yaml")) == {}
    assert load_mpc_config(str(tmp_path / "missing.yaml")) == MPCConfig()


def test_yaml_overrides(tmp_path):
    path = tmp_path / "mpc.yaml"
    path.write_text(
        "control:\n"
        "  actuation_period_ms: 50\n"
        "  horizon: 6\n"
        "  max_speed: 40\n"
        "pid:\n"
        "  kp: 0.2\n"
        "reward:\n"
        "  road_half_width: 4.0\n"
        "optimizer:\n"
        "  seed: 3\n"
        "bridge:\n"
        "  inbound_queue_size: 2\n"
        "  slow_cycle_margin: 0.02\n"
    )
    config = load_mpc_config(str(path))

    assert config.actuation_period == pytest.approx(0.05)
    assert config.horizon == 6
    assert config.max_speed == 40.0
    assert config.steering_pid.proportional_factor == 0.2
    assert config.steering_pid.derivative_factor == 1.8
    assert config.reward.road_half_width == 4.0
    assert config.reward.off_road_penalty == -1000.0
    assert config.seed == 3
    assert config.inbound_queue_size == 2
    assert config.slow_cycle_margin == 0.02


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_mpc_config(str(path)) == MPCConfig()


@pytest.mark.parametrize("section,key,bad", [
    ("control", "actuation_period_ms", 0),
    ("control", "horizon", 0),
    ("bridge", "inbound_queue_size", 0),
    ("bridge", "slow_cycle_margin", -0.01),
])
def test_invalid_values_rejected(section, key, bad):
    with pytest.raises(ValueError):
        build_mpc_config({section: {key: bad}})

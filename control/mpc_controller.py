"""
MPC (Model Predictive Control) controller.

Each cycle converts telemetry to the vehicle frame, builds a road projection
from the waypoints, compensates for actuation latency, then asks the
sample-based optimizer for a plan and applies its first actuation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Optional

import numpy as np

from control.frame import points_to_vehicle_frame
from control.pid_controller import PIDParameters
from control.policy import STEERING_PID_PARAMETERS, HeuristicPolicy
from control.reward import RewardWeights, value
from control.vehicle_model import BicycleModel
from data.formats.data_format import Actuation, ControlResult, VehicleState
from trajectory import optimizer
from trajectory.frenet import build_track

logger = logging.getLogger(__name__)

# Sent when the optimizer yields no actuation: straight ahead, coasting
SAFE_ACTUATION = Actuation(steering=0.0, throttle=0.0)


@dataclass
class MPCConfig:
    """Tuning constants for the MPC controller."""

    # Cycle timing; also the prediction step and the optimizer budget
    actuation_period_ms: float = 100.0
    horizon: int = 11

    # Heuristic policy
    max_speed: float = 70.0
    steering_pid: PIDParameters = STEERING_PID_PARAMETERS
    steering_uncertainty: float = 0.2
    throttle_uncertainty: float = 0.05
    cruise_throttle: float = 0.95
    coast_throttle: float = 0.05

    # Vehicle
    wheelbase: float = 2.67
    max_steering_angle_deg: float = 25.0

    reward: RewardWeights = field(default_factory=RewardWeights)

    # Optimizer
    min_samples: int = 1
    seed: Optional[int] = None

    # Bridge
    inbound_queue_size: int = 10
    # The optimizer spends the whole period, so small overruns are normal
    slow_cycle_margin: float = 0.05

    def __post_init__(self) -> None:
        if self.actuation_period_ms <= 0:
            raise ValueError(f"actuation_period_ms must be positive, got {self.actuation_period_ms}")
        if self.horizon < 1:
            raise ValueError(f"horizon must be at least 1, got {self.horizon}")
        if self.inbound_queue_size < 1:
            raise ValueError(f"inbound_queue_size must be at least 1, got {self.inbound_queue_size}")
        if self.slow_cycle_margin < 0:
            raise ValueError(f"slow_cycle_margin must not be negative, got {self.slow_cycle_margin}")

    @property
    def actuation_period(self) -> float:
        """Actuation period in seconds."""
        return 0.001 * self.actuation_period_ms


class MPCController:
    """
    Model Predictive Control for steering and throttle.
    """

    def __init__(self, config: Optional[MPCConfig] = None):
        """
        Initialize MPC controller.

        Args:
            config: Tuning constants (defaults if None)
        """
        self.config = config or MPCConfig()
        self.model = BicycleModel(
            wheelbase=self.config.wheelbase,
            max_steering_angle_deg=self.config.max_steering_angle_deg,
        )
        self.policy = HeuristicPolicy(
            pid_parameters=self.config.steering_pid,
            max_speed=self.config.max_speed,
            steering_uncertainty=self.config.steering_uncertainty,
            throttle_uncertainty=self.config.throttle_uncertainty,
            cruise_throttle=self.config.cruise_throttle,
            coast_throttle=self.config.coast_throttle,
        )
        self.value = partial(value, weights=self.config.reward)
        self.rng = np.random.default_rng(self.config.seed)

    def initial_state(self, telemetry, coord) -> VehicleState:
        """
        State at the moment the next command takes effect.

        The vehicle frame puts the car at the origin facing +x. The state is
        advanced one actuation period under the actuation currently in effect,
        since that is how long the new command takes to arrive.
        """
        speed = telemetry.speed
        s, d, vs, vd = coord.project(0.0, 0.0, speed, 0.0)
        state = VehicleState(0.0, 0.0, 0.0, speed, speed, 0.0, s, d, vs, vd)
        current = Actuation(steering=telemetry.steering_angle, throttle=telemetry.throttle)
        return self.model.predict(state, current, coord, self.config.actuation_period)

    def compute_control(self, telemetry) -> ControlResult:
        """
        Decide actuation for one telemetry snapshot.

        Args:
            telemetry: Object with ptsx, ptsy, x, y, psi, speed,
                steering_angle and throttle attributes

        Returns:
            ControlResult with the command and diagnostic trajectories
        """
        dt = self.config.actuation_period
        rel_waypoints = points_to_vehicle_frame(
            telemetry.ptsx, telemetry.ptsy, (telemetry.x, telemetry.y), telemetry.psi
        )
        coord = build_track(rel_waypoints)
        state = self.initial_state(telemetry, coord)

        problem = optimizer.define_problem(
            policy=self.policy,
            predict=partial(self.model.predict, coord=coord, dt=dt),
            value=self.value,
            initial_state=state,
            depth=self.config.horizon,
        )
        solution = optimizer.figure(
            problem, max_seconds=dt, min_samples=self.config.min_samples, rng=self.rng
        )
        plan = optimizer.sample_plan(solution)
        plan_value = optimizer.expected_value(solution)
        logger.debug("Plan value %.3f from %d samples", plan_value, solution.n_samples)

        fallback = not plan.actuations
        if fallback:
            logger.warning("Optimizer returned no actuation; sending safe default")
            actuation = SAFE_ACTUATION
        else:
            actuation = plan.actuations[0]

        return ControlResult(
            steering_angle=actuation.steering,
            throttle=actuation.throttle,
            waypoints=rel_waypoints,
            plan=plan.xy(),
            plan_value=plan_value,
            fallback=fallback,
        )


def build_mpc_config(config: dict) -> MPCConfig:
    """Build an MPCConfig from the YAML config dictionary."""
    control_cfg = config.get("control", {}) or {}
    pid_cfg = config.get("pid", {}) or {}
    reward_cfg = config.get("reward", {}) or {}
    vehicle_cfg = config.get("vehicle", {}) or {}
    optimizer_cfg = config.get("optimizer", {}) or {}
    bridge_cfg = config.get("bridge", {}) or {}

    defaults = MPCConfig()
    default_reward = RewardWeights()
    seed = optimizer_cfg.get("seed")

    return MPCConfig(
        actuation_period_ms=float(control_cfg.get("actuation_period_ms", defaults.actuation_period_ms)),
        horizon=int(control_cfg.get("horizon", defaults.horizon)),
        max_speed=float(control_cfg.get("max_speed", defaults.max_speed)),
        steering_pid=PIDParameters(
            proportional_factor=float(pid_cfg.get("kp", STEERING_PID_PARAMETERS.proportional_factor)),
            derivative_factor=float(pid_cfg.get("kd", STEERING_PID_PARAMETERS.derivative_factor)),
            integral_factor=float(pid_cfg.get("ki", STEERING_PID_PARAMETERS.integral_factor)),
        ),
        steering_uncertainty=float(control_cfg.get("steering_uncertainty", defaults.steering_uncertainty)),
        throttle_uncertainty=float(control_cfg.get("throttle_uncertainty", defaults.throttle_uncertainty)),
        cruise_throttle=float(control_cfg.get("cruise_throttle", defaults.cruise_throttle)),
        coast_throttle=float(control_cfg.get("coast_throttle", defaults.coast_throttle)),
        wheelbase=float(vehicle_cfg.get("wheelbase", defaults.wheelbase)),
        max_steering_angle_deg=float(vehicle_cfg.get("max_steering_angle_deg", defaults.max_steering_angle_deg)),
        reward=RewardWeights(
            progress_weight=float(reward_cfg.get("progress_weight", default_reward.progress_weight)),
            on_road_bonus=float(reward_cfg.get("on_road_bonus", default_reward.on_road_bonus)),
            off_road_penalty=float(reward_cfg.get("off_road_penalty", default_reward.off_road_penalty)),
            road_half_width=float(reward_cfg.get("road_half_width", default_reward.road_half_width)),
            center_weight=float(reward_cfg.get("center_weight", default_reward.center_weight)),
            lateral_speed_weight=float(reward_cfg.get("lateral_speed_weight", default_reward.lateral_speed_weight)),
        ),
        min_samples=int(optimizer_cfg.get("min_samples", defaults.min_samples)),
        seed=int(seed) if seed is not None else None,
        inbound_queue_size=int(bridge_cfg.get("inbound_queue_size", defaults.inbound_queue_size)),
        slow_cycle_margin=float(bridge_cfg.get("slow_cycle_margin", defaults.slow_cycle_margin)),
    )

"""
PID error tracking.

PID state is an immutable record of the three error terms. Each update
returns a new record, so callers decide whether state is carried between
measurements.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PIDParameters:
    """PID gains."""
    proportional_factor: float
    derivative_factor: float
    integral_factor: float


@dataclass(frozen=True)
class PIDState:
    """Error terms tracked by a PID controller."""
    proportional_error: float
    derivative_error: float
    integral_error: float


def initial_pid(measured_error: float) -> PIDState:
    """Set PID errors using only the first measurement."""
    return PIDState(
        proportional_error=measured_error,
        derivative_error=0.0,
        integral_error=0.0,
    )


def update_pid(pid: PIDState, measured_error: float, time_passed: float) -> PIDState:
    """
    Use a new error measurement to update PID errors.

    Args:
        pid: Previous errors
        measured_error: New error measurement
        time_passed: Time since the previous measurement (seconds, > 0)

    Returns:
        Updated errors
    """
    if time_passed <= 0:
        raise ValueError(f"time_passed must be positive, got {time_passed}")
    return PIDState(
        proportional_error=measured_error,
        derivative_error=(measured_error - pid.proportional_error) / time_passed,
        integral_error=pid.integral_error + measured_error * time_passed,
    )


def pid_actuation(pid: PIDState, params: PIDParameters) -> float:
    """
    Actuation (such as steering angle) for the current errors.

    A positive error produces a negative (corrective) actuation.
    """
    return -(params.proportional_factor * pid.proportional_error
             + params.derivative_factor * pid.derivative_error
             + params.integral_factor * pid.integral_error)

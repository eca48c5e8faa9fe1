"""
Message protocol for the simulator websocket.

Frames are text: the tag "42" followed by a JSON array whose first element
is the event name, e.g. 42["telemetry", {...}].
"""

import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from data.formats.data_format import ControlResult

logger = logging.getLogger(__name__)

MESSAGE_TAG = "42"
MANUAL_RESPONSE = '42["manual",{}]'


class Telemetry(BaseModel):
    """Telemetry from the simulator. All fields are required."""
    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)

    ptsx: List[float]  # Upcoming waypoints, absolute frame
    ptsy: List[float]
    x: float
    y: float
    speed: float
    psi: float
    psi_unity: float
    steering_angle: float  # Actuation currently in effect
    throttle: float

    @model_validator(mode="after")
    def _check_waypoints(self):
        if len(self.ptsx) != len(self.ptsy):
            raise ValueError(f"ptsx has {len(self.ptsx)} points but ptsy has {len(self.ptsy)}")
        if len(self.ptsx) < 2:
            raise ValueError("at least 2 waypoints are required")
        return self


@dataclass(frozen=True)
class ManualMessage:
    """Any well-formed message that carries no telemetry."""
    event: Optional[str] = None


Message = Union[Telemetry, ManualMessage]


def parse_message(msg: Optional[str]) -> Optional[Message]:
    """
    Parse a message from the simulator.

    Returns:
        Telemetry, ManualMessage, or None if the message is malformed
    """
    if not msg or len(msg) <= len(MESSAGE_TAG) or not msg.startswith(MESSAGE_TAG):
        return None

    json_start = msg.find("[")
    json_end = msg.rfind("]")
    if json_start < 0 or json_end < json_start:
        return None
    try:
        payload = json.loads(msg[json_start:json_end + 1])
    except ValueError:
        return None
    if not isinstance(payload, list) or not payload:
        return None

    event = payload[0]
    if event != "telemetry":
        return ManualMessage(event=event if isinstance(event, str) else None)

    data = payload[1] if len(payload) > 1 else None
    if not data:
        return ManualMessage(event=event)
    try:
        return Telemetry.model_validate(data)
    except ValidationError as e:
        logger.debug("Telemetry rejected: %s", e.errors(include_url=False))
        return None


def format_actuation(result: ControlResult) -> str:
    """Format a control result for transmission to the simulator."""
    way_x = [float(p[0]) for p in result.waypoints]
    way_y = [float(p[1]) for p in result.waypoints]
    plan_x = [float(p[0]) for p in result.plan]
    plan_y = [float(p[1]) for p in result.plan]
    body = [
        "steer",
        {
            "steering_angle": float(result.steering_angle),
            "throttle": float(result.throttle),
            "next_x": way_x,
            "next_y": way_y,
            "mpc_x": plan_x,
            "mpc_y": plan_y,
        },
    ]
    return MESSAGE_TAG + json.dumps(body, separators=(",", ":"))

"""
Rosbridge JSON protocol utilities.

This module contains functions for building outbound request envelopes,
decoding inbound frames and extracting telemetry from the message payloads
the console subscribes to.
"""

import itertools
import json
import math
import random
import string
import time
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from .constants import OP_PUBLISH, OP_SUBSCRIBE, OP_UNSUBSCRIBE, UNKNOWN_STATUS
from .models import Pose

_ID_ALPHABET = string.digits + string.ascii_lowercase


class DecodeError(ValueError):
    """Raised when an inbound frame or payload cannot be decoded."""


# ---------------------------
# Request ids
# ---------------------------

class IdSource(Protocol):
    """Supplies the correlation id of each outbound request."""

    def next(self) -> str: ...


class TimestampIdSource:
    """
    Generates ids of the form op_<epoch ms>_<9 base-36 chars>.

    Unique enough for correlating rosbridge status replies with requests.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def next(self) -> str:
        suffix = "".join(self._rng.choice(_ID_ALPHABET) for _ in range(9))
        return f"op_{int(time.time() * 1000)}_{suffix}"


class CounterIdSource:
    """Deterministic ids: <prefix>_1, <prefix>_2, ..."""

    def __init__(self, prefix: str = "op", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def next(self) -> str:
        return f"{self.prefix}_{next(self._counter)}"


# ---------------------------
# Outbound envelopes
# ---------------------------

def build_subscribe(
    request_id: str,
    topic: str,
    message_type: str,
    throttle_rate: int
) -> Dict[str, Any]:
    return {
        "op": OP_SUBSCRIBE,
        "id": request_id,
        "topic": topic,
        "type": message_type,
        "throttle_rate": throttle_rate,
    }


def build_unsubscribe(request_id: str, topic: str) -> Dict[str, Any]:
    return {
        "op": OP_UNSUBSCRIBE,
        "id": request_id,
        "topic": topic,
    }


def build_publish(
    request_id: str,
    topic: str,
    message_type: str,
    payload: Any
) -> Dict[str, Any]:
    return {
        "op": OP_PUBLISH,
        "id": request_id,
        "topic": topic,
        "msg": payload,
        "type": message_type,
    }


def encode_frame(envelope: Mapping[str, Any]) -> str:
    """Render an envelope as a single JSON text frame."""
    return json.dumps(envelope, separators=(",", ":"))


def build_twist(linear: float, angular: float) -> Dict[str, Dict[str, float]]:
    """
    Build a geometry_msgs/Twist payload for a planar robot.

    Args:
        linear: Forward velocity (m/s)
        angular: Rotation around the vertical axis (rad/s)

    Returns:
        Twist payload with every other component set to zero
    """
    return {
        "linear": {"x": linear, "y": 0, "z": 0},
        "angular": {"x": 0, "y": 0, "z": angular},
    }


def build_string(data: str) -> Dict[str, str]:
    """std_msgs/String payload."""
    return {"data": data}


# ---------------------------
# Inbound decoding
# ---------------------------

def decode_frame(data: Union[str, bytes, bytearray]) -> Dict[str, Any]:
    """
    Parse one inbound text frame.

    Args:
        data: Frame contents; bytes are decoded as UTF-8

    Returns:
        The decoded JSON object

    Raises:
        DecodeError: If the frame is not UTF-8 or not a JSON object
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"frame is not valid UTF-8: {e}") from e

    try:
        message = json.loads(data)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e

    if not isinstance(message, dict):
        raise DecodeError(f"expected a JSON object, got {type(message).__name__}")
    return message


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DecodeError(f"missing or malformed {what}")
    return value


def _require_number(value: Any, what: str) -> float:
    # bool is an int subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"missing or malformed {what}")
    return float(value)


def quaternion_to_yaw(orientation: Optional[Mapping[str, Any]]) -> float:
    """
    Planar yaw (rotation about Z) of an orientation quaternion.

    Roll and pitch are ignored. A missing quaternion, or one with any
    component missing, yields 0.
    """
    if not isinstance(orientation, Mapping):
        return 0.0
    try:
        x = _require_number(orientation.get("x"), "orientation.x")
        y = _require_number(orientation.get("y"), "orientation.y")
        z = _require_number(orientation.get("z"), "orientation.z")
        w = _require_number(orientation.get("w"), "orientation.w")
    except DecodeError:
        return 0.0

    siny_cosp = 2 * (w * z + x * y)
    cosy_cosp = 1 - 2 * (y * y + z * z)
    return math.atan2(siny_cosp, cosy_cosp)


def decode_battery(msg: Any) -> Optional[float]:
    """
    Battery percentage from a sensor_msgs/BatteryState payload.

    The wire value is a fraction in [0, 1]; it is scaled to a percentage
    and rounded to one decimal. A payload without percentage
    or with a non-finite value is unknown.
    """
    msg = _require_mapping(msg, "battery message")
    percentage = msg.get("percentage")
    if percentage is None:
        return None
    fraction = _require_number(percentage, "percentage")
    # NaN means the robot cannot measure it
    if not math.isfinite(fraction):
        return None
    return round(fraction * 100, 1)


def decode_pose(msg: Any) -> Pose:
    """
    Planar pose from a nav_msgs/Odometry payload (msg.pose.pose).

    Raises:
        DecodeError: If the nested pose or position fields are missing
    """
    msg = _require_mapping(msg, "odometry message")
    pose_with_covariance = _require_mapping(msg.get("pose"), "pose")
    pose = _require_mapping(pose_with_covariance.get("pose"), "pose.pose")
    position = _require_mapping(pose.get("position"), "pose.pose.position")

    return Pose(
        x=_require_number(position.get("x"), "position.x"),
        y=_require_number(position.get("y"), "position.y"),
        theta=quaternion_to_yaw(pose.get("orientation")),
    )


def decode_status(msg: Any) -> str:
    """Text of a std_msgs/String payload, or the unknown sentinel when empty."""
    msg = _require_mapping(msg, "status message")
    data = msg.get("data")
    if not data:
        return UNKNOWN_STATUS
    return str(data)

"""
Data types shared by the rosbridge session, the transport and the UI layer.

This module contains the bridge configuration, the telemetry snapshot,
the connection/error states and the socket lifecycle events.
"""

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from config import (
    DEFAULT_THROTTLE_RATE_MS,
    JOYSTICK_ANGULAR,
    JOYSTICK_LINEAR,
    PREDEFINED_COMMANDS,
    TOPIC_BATTERY_STATUS,
    TOPIC_CMD_VEL,
    TOPIC_ODOMETRY,
    TOPIC_ROBOT_STATUS,
    TYPE_BATTERY_STATE,
    TYPE_ODOMETRY,
    TYPE_STRING,
    TYPE_TWIST,
)
from .constants import UNKNOWN_STATUS


class ConnectionState(Enum):
    """Bridge connection states"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ErrorKind(Enum):
    """Categories of errors recorded as the session's last error"""
    TRANSPORT = "transport"
    DECODE = "decode"
    PROTOCOL_STATUS = "protocol_status"
    PRECONDITION = "precondition"


@dataclass(frozen=True)
class SessionError:
    kind: ErrorKind
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


# ---------------------------
# Configuration
# ---------------------------

@dataclass(frozen=True)
class TopicBinding:
    topic: str
    message_type: str


@dataclass(frozen=True)
class NamedCommand:
    """A predefined std_msgs/String command sent to its own topic."""
    name: str
    topic: str
    data: str


def _default_commands() -> Tuple[NamedCommand, ...]:
    return tuple(
        NamedCommand(name=name, topic=topic, data=data)
        for name, (topic, data) in PREDEFINED_COMMANDS.items()
    )


@dataclass(frozen=True)
class BridgeConfig:
    """
    Immutable topic/type bindings and tuning values for one BridgeSession.

    Defaults come from config.py; tests and alternative robots pass their
    own instance instead.
    """
    velocity: TopicBinding = TopicBinding(TOPIC_CMD_VEL, TYPE_TWIST)
    battery: TopicBinding = TopicBinding(TOPIC_BATTERY_STATUS, TYPE_BATTERY_STATE)
    odometry: TopicBinding = TopicBinding(TOPIC_ODOMETRY, TYPE_ODOMETRY)
    status: TopicBinding = TopicBinding(TOPIC_ROBOT_STATUS, TYPE_STRING)
    string_type: str = TYPE_STRING
    throttle_rate_ms: int = DEFAULT_THROTTLE_RATE_MS
    linear_sensitivity: float = JOYSTICK_LINEAR
    angular_sensitivity: float = JOYSTICK_ANGULAR
    commands: Tuple[NamedCommand, ...] = field(default_factory=_default_commands)

    def feeds(self) -> Tuple[TopicBinding, TopicBinding, TopicBinding]:
        """Topics subscribed automatically once the socket opens."""
        return (self.battery, self.odometry, self.status)

    def command(self, name: str) -> Optional[NamedCommand]:
        for command in self.commands:
            if command.name == name:
                return command
        return None


# ---------------------------
# Telemetry
# ---------------------------

@dataclass
class Pose:
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0


@dataclass
class TelemetrySnapshot:
    """
    Latest value received on each subscribed feed.

    battery is a percentage rounded to one decimal, or None while unknown.
    """
    battery: Optional[float] = None
    pose: Pose = field(default_factory=Pose)
    status: str = UNKNOWN_STATUS

    def reset(self) -> None:
        self.battery = None
        self.pose = Pose()
        self.status = UNKNOWN_STATUS

    def copy(self) -> "TelemetrySnapshot":
        return replace(self, pose=replace(self.pose))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Subscription:
    topic: str
    message_type: str
    throttle_rate: int
    request_id: str


# ---------------------------
# Socket lifecycle events
# ---------------------------

@dataclass(frozen=True)
class SocketOpened:
    pass


@dataclass(frozen=True)
class SocketMessage:
    data: Union[str, bytes]


@dataclass(frozen=True)
class SocketError:
    reason: str = ""


@dataclass(frozen=True)
class SocketClosed:
    code: Optional[int] = None
    reason: str = ""


SocketEvent = Union[SocketOpened, SocketMessage, SocketError, SocketClosed]

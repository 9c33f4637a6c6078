"""
This file holds the session that talks to the rosbridge server on the robot
Basically, it manages the connection state, the topic subscriptions and the telemetry
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from config import DEFAULT_ROSBRIDGE_URL
from .constants import (
    ERROR_NOT_CONNECTED,
    ERROR_PROCESSING_MESSAGE,
    OP_PUBLISH,
    OP_STATUS,
    REPORTED_STATUS_LEVELS,
    STATUS_ALREADY_CONNECTED,
    STATUS_CONNECTED,
    STATUS_DISCONNECTED,
)
from .models import (
    BridgeConfig,
    ConnectionState,
    ErrorKind,
    SessionError,
    SocketClosed,
    SocketError,
    SocketEvent,
    SocketMessage,
    SocketOpened,
    Subscription,
    TelemetrySnapshot,
)
from .protocol import (
    DecodeError,
    IdSource,
    TimestampIdSource,
    build_publish,
    build_string,
    build_subscribe,
    build_twist,
    build_unsubscribe,
    decode_battery,
    decode_frame,
    decode_pose,
    decode_status,
    encode_frame,
)

logger = logging.getLogger(__name__)

Emitter = Callable[[str, Any], None]


class BridgeSession:
    """
    Client session for one rosbridge server.

    This class owns the single socket to the bridge, encodes subscribe,
    unsubscribe and publish requests, decodes the subscribed feeds into a
    TelemetrySnapshot and tracks the connection state. Failures never
    raise out of the public methods; they are recorded as last_error.

    Socket lifecycle events are fed to handle_event() by the socket that
    produced them. Events from a socket that is no longer the current one
    are ignored.
    """

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        socket_factory: Optional[Callable] = None,
        id_source: Optional[IdSource] = None,
        emitter: Optional[Emitter] = None,
        endpoint: str = DEFAULT_ROSBRIDGE_URL
    ):
        """
        Initialize the session.

        Args:
            config: Topic bindings and tuning values (config.py defaults if None)
            socket_factory: Called as factory(endpoint, on_event) and must return an
                idle socket with open(), send(text) and close()
            id_source: Object with next() -> str supplying request ids
            emitter: emit(event_name, payload) used to push updates to the UI
            endpoint: Initial rosbridge URL
        """
        if socket_factory is None:
            from .transport import connection_factory
            socket_factory = connection_factory()

        self.config = config or BridgeConfig()
        self.emitter = emitter
        self._socket_factory = socket_factory
        self._ids = id_source or TimestampIdSource()
        self._endpoint = endpoint
        self._socket = None
        self._state = ConnectionState.DISCONNECTED
        self._status_text = STATUS_DISCONNECTED
        self._last_error: Optional[SessionError] = None
        self._telemetry = TelemetrySnapshot()
        self._subscriptions: Dict[str, Subscription] = {}
        # guards socket, state and telemetry across UI threads and the bridge loop thread
        self._lock = threading.RLock()

    # ---- observable state ----

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def telemetry(self) -> TelemetrySnapshot:
        """Copy of the latest telemetry."""
        with self._lock:
            return self._telemetry.copy()

    @property
    def last_error(self) -> Optional[SessionError]:
        return self._last_error

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def subscriptions(self) -> Dict[str, Subscription]:
        with self._lock:
            return dict(self._subscriptions)

    def status_view(self) -> Dict[str, Any]:
        """Connection state in a form ready to emit to the frontend."""
        with self._lock:
            return {
                "state": self._state.value,
                "connected": self.is_connected,
                "endpoint": self._endpoint,
                "status": self._status_text,
                "last_error": self._last_error.to_dict() if self._last_error else None,
            }

    # ---- emit helpers ----

    def _emit(self, event: str, payload: Any) -> None:
        if self.emitter:
            self.emitter(event, payload)

    def _emit_log(self, message: str) -> None:
        """Helper method to emit log messages to frontend."""
        self._emit("log", message)

    def _emit_status(self) -> None:
        self._emit("robot_status", self.status_view())

    def _emit_telemetry(self) -> None:
        self._emit("telemetry", self._telemetry.to_dict())

    def _record_error(self, kind: ErrorKind, message: str) -> None:
        self._last_error = SessionError(kind, message)
        logger.warning("%s error: %s", kind.value, message)
        self._emit_log(f"⚠️ {message}")
        self._emit_status()

    # ---- connection lifecycle ----

    def set_endpoint(self, endpoint: str) -> bool:
        """
        Change the rosbridge URL. Only allowed while no socket is held.

        Returns:
            True if the endpoint was changed
        """
        with self._lock:
            if self._socket is not None:
                self._emit_log("⚠️ Disconnect before changing the rosbridge URL")
                return False
            self._endpoint = endpoint
            return True

    def connect(self, endpoint: Optional[str] = None) -> None:
        """
        Open a socket to the bridge. Returns immediately; the session
        becomes CONNECTED once the socket reports it is open.

        Args:
            endpoint: rosbridge URL; the current endpoint is used if None
        """
        with self._lock:
            if self._socket is not None and self._state in (
                ConnectionState.CONNECTING, ConnectionState.CONNECTED
            ):
                self._status_text = STATUS_ALREADY_CONNECTED
                self._emit_status()
                return

            if self._socket is not None:
                # Errored socket still waiting for its close event
                self._discard_socket()

            if endpoint is not None:
                self._endpoint = endpoint

            self._state = ConnectionState.CONNECTING
            self._status_text = f"Connecting to {self._endpoint}..."
            self._last_error = None
            self._emit_log(f"Attempting to connect to {self._endpoint} …")
            self._emit_status()

            try:
                socket = self._socket_factory(self._endpoint, self.handle_event)
                self._socket = socket
                socket.open()
            except (ValueError, OSError, RuntimeError) as e:
                self._socket = None
                self._state = ConnectionState.ERROR
                self._status_text = f"Failed to connect: {e}"
                self._record_error(ErrorKind.TRANSPORT, f"Connection Init Error: {e}")

    def disconnect(self) -> None:
        """Close the socket (if any) and reset state and telemetry. Idempotent."""
        with self._lock:
            if self._socket is not None:
                self._emit_log("UI requested disconnection")
            self._discard_socket()
            self._state = ConnectionState.DISCONNECTED
            self._status_text = STATUS_DISCONNECTED
            self._reset_telemetry()
            self._emit_status()

    def _discard_socket(self) -> None:
        socket, self._socket = self._socket, None
        self._subscriptions.clear()
        if socket is not None:
            try:
                socket.close()
            except (OSError, RuntimeError) as e:
                logger.warning("Error closing rosbridge socket: %s", e)

    def _reset_telemetry(self) -> None:
        self._telemetry.reset()
        self._emit_telemetry()

    # ---- socket events ----

    def handle_event(self, socket, event: SocketEvent) -> None:
        """
        Apply one socket lifecycle event.

        Args:
            socket: The socket that produced the event
            event: SocketOpened, SocketMessage, SocketError or SocketClosed
        """
        with self._lock:
            if socket is not self._socket:
                logger.debug("Ignoring %s from a superseded socket", type(event).__name__)
                return

            if isinstance(event, SocketOpened):
                self._on_open()
            elif isinstance(event, SocketMessage):
                self._on_message(event.data)
            elif isinstance(event, SocketError):
                self._on_error(event.reason)
            elif isinstance(event, SocketClosed):
                self._on_close(event.code, event.reason)
            else:
                logger.warning("Unknown socket event %r", event)

    def _on_open(self) -> None:
        self._state = ConnectionState.CONNECTED
        self._status_text = STATUS_CONNECTED
        self._emit_log(f"✓ WebSocket CONNECTED ({self._endpoint})")
        self._emit_status()

        for feed in self.config.feeds():
            self.subscribe(feed.topic, feed.message_type)

    def _on_error(self, reason: str) -> None:
        self._state = ConnectionState.ERROR
        self._status_text = f"Connection Error: {reason or 'Unknown error'}"
        self._record_error(ErrorKind.TRANSPORT, f"WebSocket Error: {reason or 'Unknown error'}")

    def _on_close(self, code: Optional[int], reason: str) -> None:
        self._socket = None
        self._subscriptions.clear()
        self._state = ConnectionState.DISCONNECTED
        self._status_text = f"{STATUS_DISCONNECTED} ({code if code is not None else 'N/A'})"
        self._emit_log(f"✗ WebSocket DISCONNECTED {reason}".rstrip())
        self._reset_telemetry()
        self._emit_status()

    def _on_message(self, data) -> None:
        try:
            message = decode_frame(data)
        except DecodeError as e:
            self._record_error(ErrorKind.DECODE, f"{ERROR_PROCESSING_MESSAGE} ({e})")
            return

        op = message.get("op")
        if op == OP_PUBLISH:
            self._dispatch_publish(message.get("topic"), message.get("msg"))
        elif op == OP_STATUS:
            level = message.get("level")
            if level in REPORTED_STATUS_LEVELS:
                logger.error(
                    "rosbridge status [%s for %s]: %s", level, message.get("id"), message.get("msg")
                )
                self._record_error(
                    ErrorKind.PROTOCOL_STATUS, f"ROS Bridge Error: {message.get('msg')}"
                )

    def _dispatch_publish(self, topic: Any, msg: Any) -> None:
        config = self.config
        try:
            if topic == config.battery.topic:
                self._telemetry.battery = decode_battery(msg)
            elif topic == config.odometry.topic:
                self._telemetry.pose = decode_pose(msg)
            elif topic == config.status.topic:
                self._telemetry.status = decode_status(msg)
            else:
                return
        except DecodeError as e:
            self._record_error(ErrorKind.DECODE, f"{ERROR_PROCESSING_MESSAGE} ({topic}: {e})")
            return
        self._emit_telemetry()

    # ---- outbound requests ----

    def _send(self, envelope: Dict[str, Any]) -> bool:
        socket = self._socket
        if socket is None:
            self._record_error(ErrorKind.PRECONDITION, ERROR_NOT_CONNECTED)
            return False
        socket.send(encode_frame(envelope))
        return True

    def subscribe(
        self,
        topic: str,
        message_type: str,
        throttle_rate: Optional[int] = None
    ) -> None:
        """
        Subscribe to a topic. Dropped silently while not connected.

        Args:
            topic: ROS topic name
            message_type: ROS message type, e.g. sensor_msgs/BatteryState
            throttle_rate: Minimum ms between updates (config default if None)
        """
        if throttle_rate is None:
            throttle_rate = self.config.throttle_rate_ms
        # ids are drawn before taking the lock
        request_id = self._ids.next()

        with self._lock:
            if not self.is_connected:
                logger.debug("Not connected; subscribe to %s dropped", topic)
                return
            if not self._send(build_subscribe(request_id, topic, message_type, throttle_rate)):
                return
            self._subscriptions[topic] = Subscription(topic, message_type, throttle_rate, request_id)
            self._emit_log(f"✓ Subscribed: {topic} ({message_type}, id={request_id})")

    def unsubscribe(self, topic: str) -> None:
        """Unsubscribe from a topic. Dropped silently while not connected."""
        request_id = self._ids.next()

        with self._lock:
            if not self.is_connected:
                logger.debug("Not connected; unsubscribe from %s dropped", topic)
                return
            if not self._send(build_unsubscribe(request_id, topic)):
                return
            self._subscriptions.pop(topic, None)
            self._emit_log(f"✓ Unsubscribed: {topic} (id={request_id})")

    def publish(self, topic: str, message_type: str, payload: Any) -> bool:
        """
        Publish one message. Fire-and-forget: nothing is awaited.

        While not connected nothing is sent and the precondition error is
        recorded as last_error.

        Returns:
            True if the frame was handed to the socket
        """
        request_id = self._ids.next()

        with self._lock:
            if not self.is_connected:
                self._record_error(ErrorKind.PRECONDITION, ERROR_NOT_CONNECTED)
                return False
            if not self._send(build_publish(request_id, topic, message_type, payload)):
                return False
        logger.debug("Published to %s: %s", topic, payload)
        return True

    def send_velocity(self, linear: float, angular: float) -> None:
        """
        Send a Twist command on the velocity topic.

        Args:
            linear: Forward velocity (m/s)
            angular: Rotation around Z (rad/s)
        """
        velocity = self.config.velocity
        if self.publish(velocity.topic, velocity.message_type, build_twist(linear, angular)):
            self._emit_log(f"→ Sent {velocity.topic}: linear={linear}, angular={angular}")

    def emergency_stop(self) -> None:
        self.send_velocity(0, 0)
        self._emit("alert", {"title": "Emergency Stop", "message": "Robot motion stopped!"})

    def send_named_command(self, name: str) -> bool:
        """
        Publish one of the predefined std_msgs/String commands.

        Returns:
            False if no command with that name is configured
        """
        command = self.config.command(name)
        if command is None:
            self._emit_log(f"⚠️ Unknown command: {name}")
            return False

        self.publish(command.topic, self.config.string_type, build_string(command.data))
        self._emit("alert", {"title": "Command Sent", "message": f"Command for {command.topic} sent."})
        return True

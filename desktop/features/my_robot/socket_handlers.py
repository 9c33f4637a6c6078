"""
Robot control SocketIO event handlers.

This module handles WebSocket events for robot control functionality.
"""

from typing import Any, Dict, Optional

from flask_socketio import SocketIO

from rosbridge import BridgeSession
from utils.command_converter import CommandConverter


def register_socket_handlers(socketio: SocketIO, session: BridgeSession) -> None:
    """
    Register SocketIO event handlers for robot control.

    Args:
        socketio: Flask-SocketIO instance
        session: BridgeSession the handlers drive
    """

    @socketio.on("connect_robot")
    def handle_connect_robot(data: Optional[Dict[str, Any]] = None) -> None:
        """
        Handle robot connection request from frontend.

        Args:
            data: Dictionary containing connection parameters:
                - url: rosbridge URL (optional, defaults to the session's endpoint)
        """
        url = (data or {}).get("url") or None
        socketio.emit("log", f"UI requested connection to {url or session.endpoint}")
        session.connect(url)

    @socketio.on("disconnect_robot")
    def handle_disconnect_robot() -> None:
        """
        Handle robot disconnection request from frontend.
        """
        session.disconnect()
        socketio.emit("robot_disconnected")

    @socketio.on("check_robot_status")
    def handle_check_robot_status() -> None:
        """
        Handle robot status check request from frontend.

        Responds with the connection status and the latest telemetry.
        """
        socketio.emit("robot_status", session.status_view())
        socketio.emit("telemetry", session.telemetry.to_dict())

    @socketio.on("send_command")
    def handle_send_command(data: Optional[Dict[str, Any]] = None) -> None:
        """
        Handle movement command from frontend.

        Converts text command to a Twist velocity and sends it to the robot.

        Args:
            data: Dictionary containing command parameters:
                - command: Command string ("move up", "move down", etc.)
                - speed: Speed percentage (0-100, optional)
        """
        data = data or {}
        command = data.get("command", "stop")
        speed_percentage = data.get("speed", 100)  # Default to 100%

        speed_factor = CommandConverter.speed_percentage_to_factor(speed_percentage)
        linear, angular = CommandConverter.command_to_velocity(
            command,
            speed_factor,
            linear=session.config.linear_sensitivity,
            angular=session.config.angular_sensitivity,
        )

        socketio.emit("log", f"UI command: {command} (speed: {speed_percentage}%)")
        session.send_velocity(linear, angular)

    @socketio.on("emergency_stop")
    def handle_emergency_stop() -> None:
        socketio.emit("log", "UI requested emergency stop")
        session.emergency_stop()

    @socketio.on("send_predefined_command")
    def handle_send_predefined_command(data: Optional[Dict[str, Any]] = None) -> None:
        """
        Handle a predefined command button (e.g. go_to_dock) from frontend.

        Args:
            data: Dictionary containing:
                - name: Name of the command configured in config.py
        """
        name = (data or {}).get("name", "")
        session.send_named_command(name)

"""
Rosbridge client module for ROS communication.

This module provides the interface for communicating with the robot
via the rosbridge JSON-over-WebSocket protocol.
"""

from .models import BridgeConfig, ConnectionState, ErrorKind, TelemetrySnapshot
from .session import BridgeSession

__all__ = ['BridgeSession', 'BridgeConfig', 'ConnectionState', 'ErrorKind', 'TelemetrySnapshot']

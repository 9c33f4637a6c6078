"""
Converts text commands from the control page to Twist velocity parameters.
"""

from typing import Tuple

from config import JOYSTICK_ANGULAR, JOYSTICK_LINEAR


class CommandConverter:
    """
    Converts text commands to (linear, angular) velocity pairs.
    """

    @staticmethod
    def command_to_velocity(
        command: str,
        speed_factor: float = 1.0,
        linear: float = JOYSTICK_LINEAR,
        angular: float = JOYSTICK_ANGULAR
    ) -> Tuple[float, float]:
        """
        Convert a text command to velocity parameters.

        Args:
            command: Command string ("move up", "move down", "move left", "move right", "stop")
            speed_factor: Speed multiplier (0.0 to 1.0) to scale velocities
            linear: Full-speed linear velocity (m/s)
            angular: Full-speed angular velocity (rad/s)

        Returns:
            (linear_x, angular_z) tuple
        """
        # Normalize speed factor to valid range
        speed_factor = max(0.0, min(1.0, speed_factor))

        if command == "move up":
            return (linear * speed_factor, 0.0)
        elif command == "move down":
            return (-linear * speed_factor, 0.0)
        elif command == "move left":
            return (0.0, angular * speed_factor)
        elif command == "move right":
            return (0.0, -angular * speed_factor)
        else:  # "stop" or unknown command
            return (0.0, 0.0)

    @staticmethod
    def speed_percentage_to_factor(speed_percentage) -> float:
        """
        Convert speed percentage (0-100) to factor (0.0-1.0).

        Args:
            speed_percentage: Speed as percentage (0-100)

        Returns:
            Speed factor (0.0-1.0)
        """
        try:
            value = float(speed_percentage)
        except (TypeError, ValueError):
            value = 100.0
        return max(0.0, min(100.0, value)) / 100.0

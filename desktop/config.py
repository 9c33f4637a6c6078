"""
This module holds all the setup options for the rosbridge teleop console
kind of like a control panel where you can change settings without messing with the main
"""

import os

# Flask Configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "your-secret-key")
FLASK_HOST = "0.0.0.0"
FLASK_PORT = 8080
FLASK_DEBUG = False

# Rosbridge Connection Configuration
DEFAULT_ROSBRIDGE_URL = "ws://192.168.1.100:9090"  # rosbridge_server default port is 9090
SOCKET_OPEN_TIMEOUT_S = 5.0

# ROS Topic Names
TOPIC_CMD_VEL = "/cmd_vel"
TOPIC_BATTERY_STATUS = "/battery_status"
TOPIC_ODOMETRY = "/odom"
TOPIC_ROBOT_STATUS = "/robot_status_app"

# ROS Message Types
TYPE_TWIST = "geometry_msgs/Twist"
TYPE_BATTERY_STATE = "sensor_msgs/BatteryState"
TYPE_ODOMETRY = "nav_msgs/Odometry"
TYPE_STRING = "std_msgs/String"

# Subscription throttle rate hint sent to the bridge (ms)
DEFAULT_THROTTLE_RATE_MS = 200

# Joystick sensitivity
# Linear velocity (m/s)
JOYSTICK_LINEAR = 0.2
# Angular velocity (rad/s)
JOYSTICK_ANGULAR = 0.5

# Predefined commands: name -> (topic, std_msgs/String data)
PREDEFINED_COMMANDS = {
    "go_to_dock": ("/command/go_to_dock", "start_docking"),
    "start_task": ("/command/start_task", "task_A"),
}

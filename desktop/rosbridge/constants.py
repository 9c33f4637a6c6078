"""
This module holds the constants that define
how the app talks to a rosbridge server over its JSON protocol
"""

# ---------------------------
# Rosbridge Protocol Operations
# ---------------------------
OP_SUBSCRIBE = "subscribe"
OP_UNSUBSCRIBE = "unsubscribe"
OP_PUBLISH = "publish"
OP_STATUS = "status"

# Status levels that are surfaced as the last error
REPORTED_STATUS_LEVELS = ("error", "warning")

# ---------------------------
# Telemetry Defaults
# ---------------------------
UNKNOWN_STATUS = "N/A"

# ---------------------------
# Status / Error Texts
# ---------------------------
STATUS_DISCONNECTED = "Disconnected"
STATUS_CONNECTED = "Connected to ROS Master via rosbridge"
STATUS_ALREADY_CONNECTED = "Already connected."

ERROR_NOT_CONNECTED = "Cannot send command: Not connected."
ERROR_PROCESSING_MESSAGE = "Error processing message from ROS."

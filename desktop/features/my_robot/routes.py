"""
Robot control page routes.

This module contains HTTP routes for the robot control page.
"""

from flask import current_app, jsonify, render_template

from config import DEFAULT_ROSBRIDGE_URL
from . import robot_bp


@robot_bp.route("/my_robot")
def my_robot():
    """
    Robot control panel page.

    Returns:
        Robot control panel template
    """
    session = current_app.extensions["bridge_session"]
    return render_template(
        "my_robot.html",
        default_url=session.endpoint or DEFAULT_ROSBRIDGE_URL,
        commands=session.config.commands,
    )


@robot_bp.route("/my_robot/status")
def my_robot_status():
    """
    Connection status and latest telemetry as JSON.

    Returns:
        JSON document with "connection" and "telemetry" keys
    """
    session = current_app.extensions["bridge_session"]
    return jsonify({
        "connection": session.status_view(),
        "telemetry": session.telemetry.to_dict(),
    })

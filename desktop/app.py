"""
This file is basically the starting point for the Flask app
It sets things up, creates the rosbridge session, and hooks up all the routes and features.
"""

import logging
import os
from typing import Optional

from flask import Flask, render_template
from flask_socketio import SocketIO

from config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, SECRET_KEY
from rosbridge import BridgeSession

# Initialize SocketIO (will be initialized with app later)
socketio = SocketIO(cors_allowed_origins="*")


def create_app(session: Optional[BridgeSession] = None) -> Flask:
    """
    Create and configure Flask application.

    This function:
    1. Creates Flask app
    2. Initializes SocketIO
    3. Creates the rosbridge session (unless one is given)
    4. Registers all features/routes and socket handlers
    5. Sets up error handlers

    Args:
        session: BridgeSession to use; a new one emitting through SocketIO if None

    Returns:
        Configured Flask application instance
    """
    # 1. Create Flask app with shared template and static folders
    base_dir = os.path.dirname(os.path.abspath(__file__))
    template_dir = os.path.join(base_dir, 'shared', 'templates')
    static_dir = os.path.join(base_dir, 'shared', 'static')

    app = Flask(__name__, template_folder=template_dir, static_folder=static_dir)
    app.config['SECRET_KEY'] = SECRET_KEY

    # 2. Initialize SocketIO with the app
    socketio.init_app(app)

    # 3. One rosbridge session per app
    if session is None:
        session = BridgeSession()
    if session.emitter is None:
        session.emitter = socketio.emit
    app.extensions['bridge_session'] = session

    # 4. Register all features/routes
    register_features(app, session)

    # 5. Set up error handlers
    register_error_handlers(app)

    return app


def register_features(app: Flask, session: BridgeSession) -> None:
    """
    Register all feature blueprints and socket handlers with the app.

    Args:
        app: Flask application instance
        session: BridgeSession driven by the robot control feature
    """
    from features.home import home_bp
    from features.my_robot import robot_bp
    from features.my_robot.socket_handlers import register_socket_handlers

    # Register blueprints
    app.register_blueprint(home_bp)
    app.register_blueprint(robot_bp)

    register_socket_handlers(socketio, session)


def register_error_handlers(app: Flask) -> None:
    """
    Register error handlers for the app.

    Args:
        app: Flask application instance
    """
    @app.errorhandler(404)
    def not_found(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        return render_template('errors/500.html'), 500


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    socketio.run(app, host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG, use_reloader=False,
                 allow_unsafe_werkzeug=True)


# Export socketio so other modules can use it
__all__ = ['create_app', 'socketio']


if __name__ == "__main__":
    main()

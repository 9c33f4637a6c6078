import json

import pytest

from app import create_app, socketio
from rosbridge import BridgeSession, ConnectionState
from rosbridge.models import SocketOpened
from rosbridge.protocol import CounterIdSource


class FakeSocket:
    def __init__(self, endpoint: str, on_event) -> None:
        self.endpoint = endpoint
        self.on_event = on_event
        self.sent = []
        self.closed = False

    def open(self) -> None:
        pass

    def send(self, text: str) -> None:
        self.sent.append(json.loads(text))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sockets() -> list:
    return []


@pytest.fixture
def session(sockets) -> BridgeSession:
    def factory(endpoint, on_event):
        socket = FakeSocket(endpoint, on_event)
        sockets.append(socket)
        return socket

    return BridgeSession(socket_factory=factory, id_source=CounterIdSource(), endpoint="ws://robot:9090")


@pytest.fixture
def app(session):
    app = create_app(session)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    # test client must be created right after create_app (shared SocketIO server)
    sio_client = socketio.test_client(app)
    sio_client.get_received()
    return sio_client


def _events(client, name: str) -> list:
    return [packet["args"][0] if packet["args"] else None
            for packet in client.get_received() if packet["name"] == name]


def test_home_page(app) -> None:
    response = app.test_client().get("/")
    assert response.status_code == 200
    assert b"Rosbridge Teleop" in response.data


def test_robot_page_shows_default_url_and_commands(app) -> None:
    response = app.test_client().get("/my_robot")
    assert response.status_code == 200
    assert b"ws://robot:9090" in response.data
    assert b"go_to_dock" in response.data


def test_status_endpoint(app) -> None:
    response = app.test_client().get("/my_robot/status")
    assert response.status_code == 200
    body = response.get_json()
    assert body["connection"]["state"] == "disconnected"
    assert body["telemetry"] == {"battery": None, "pose": {"x": 0.0, "y": 0.0, "theta": 0.0}, "status": "N/A"}


def test_unknown_page_is_404(app) -> None:
    response = app.test_client().get("/does-not-exist")
    assert response.status_code == 404


def test_connect_robot_event(client, session, sockets) -> None:
    client.emit("connect_robot", {"url": "ws://10.1.1.7:9090"})

    assert len(sockets) == 1
    assert sockets[0].endpoint == "ws://10.1.1.7:9090"
    assert session.state is ConnectionState.CONNECTING
    statuses = _events(client, "robot_status")
    assert statuses[-1]["status"] == "Connecting to ws://10.1.1.7:9090..."


def test_send_command_event_publishes_twist(client, session, sockets) -> None:
    client.emit("connect_robot", {})
    sockets[0].on_event(sockets[0], SocketOpened())

    client.emit("send_command", {"command": "move up", "speed": 50})

    frame = sockets[0].sent[-1]
    assert frame["op"] == "publish"
    assert frame["topic"] == "/cmd_vel"
    assert frame["msg"]["linear"]["x"] == pytest.approx(0.1)


def test_send_command_while_disconnected_reports_error(client) -> None:
    client.emit("send_command", {"command": "move left"})
    statuses = _events(client, "robot_status")
    assert statuses[-1]["last_error"]["message"] == "Cannot send command: Not connected."


def test_emergency_stop_event_alerts(client, sockets) -> None:
    client.emit("connect_robot", {})
    sockets[0].on_event(sockets[0], SocketOpened())
    client.get_received()

    client.emit("emergency_stop")

    assert sockets[0].sent[-1]["msg"] == {"linear": {"x": 0, "y": 0, "z": 0}, "angular": {"x": 0, "y": 0, "z": 0}}
    assert _events(client, "alert") == [{"title": "Emergency Stop", "message": "Robot motion stopped!"}]


def test_predefined_command_event(client, sockets) -> None:
    client.emit("connect_robot", {})
    sockets[0].on_event(sockets[0], SocketOpened())

    client.emit("send_predefined_command", {"name": "start_task"})

    assert sockets[0].sent[-1]["topic"] == "/command/start_task"
    assert sockets[0].sent[-1]["msg"] == {"data": "task_A"}


def test_disconnect_robot_event(client, session, sockets) -> None:
    client.emit("connect_robot", {})
    sockets[0].on_event(sockets[0], SocketOpened())

    client.emit("disconnect_robot")

    assert sockets[0].closed is True
    assert session.state is ConnectionState.DISCONNECTED
    assert _events(client, "robot_disconnected") == [None]


def test_check_robot_status_event(client) -> None:
    client.emit("check_robot_status")
    received = client.get_received()
    names = [packet["name"] for packet in received]
    assert names == ["robot_status", "telemetry"]
    assert received[0]["args"][0]["endpoint"] == "ws://robot:9090"

import json
import math
import random

import pytest

from rosbridge.protocol import (
    CounterIdSource,
    DecodeError,
    TimestampIdSource,
    build_publish,
    build_subscribe,
    build_twist,
    build_unsubscribe,
    decode_battery,
    decode_frame,
    decode_pose,
    decode_status,
    encode_frame,
    quaternion_to_yaw,
)


def _yaw_quaternion(theta: float) -> dict:
    return {"x": 0.0, "y": 0.0, "z": math.sin(theta / 2), "w": math.cos(theta / 2)}


def test_identity_quaternion_has_zero_yaw() -> None:
    assert quaternion_to_yaw({"x": 0, "y": 0, "z": 0, "w": 1}) == 0.0


@pytest.mark.parametrize("theta", [-3.0, -math.pi / 2, -0.25, 0.0, 0.4, math.pi / 2, 3.0, math.pi])
def test_pure_yaw_rotation_is_recovered(theta: float) -> None:
    assert quaternion_to_yaw(_yaw_quaternion(theta)) == pytest.approx(theta, abs=1e-9)


@pytest.mark.parametrize("orientation", [None, {}, {"x": 0, "y": 0, "z": 0.3}, {"x": 0, "y": 0, "z": None, "w": 1}])
def test_incomplete_quaternion_has_zero_yaw(orientation) -> None:
    assert quaternion_to_yaw(orientation) == 0.0


def test_battery_fraction_is_scaled_and_rounded() -> None:
    assert decode_battery({"percentage": 0.755}) == 75.5
    assert decode_battery({"percentage": 1.0}) == 100.0
    assert decode_battery({"percentage": 0.12345}) == 12.3


def test_battery_without_percentage_is_unknown() -> None:
    assert decode_battery({"voltage": 12.1}) is None


def test_unmeasured_battery_is_unknown() -> None:
    frame = decode_frame('{"op":"publish","topic":"/battery_status","msg":{"percentage":NaN}}')
    assert decode_battery(frame["msg"]) is None
    assert decode_battery({"percentage": float("inf")}) is None


def test_battery_rejects_malformed_payload() -> None:
    with pytest.raises(DecodeError):
        decode_battery({"percentage": "full"})
    with pytest.raises(DecodeError):
        decode_battery(None)


def test_decode_pose_reads_nested_pose() -> None:
    msg = {
        "pose": {
            "pose": {
                "position": {"x": 1.25, "y": -0.5, "z": 0.0},
                "orientation": _yaw_quaternion(0.75),
            },
            "covariance": [0.0] * 36,
        }
    }
    pose = decode_pose(msg)
    assert pose.x == 1.25
    assert pose.y == -0.5
    assert pose.theta == pytest.approx(0.75)


def test_decode_pose_without_orientation_has_zero_theta() -> None:
    pose = decode_pose({"pose": {"pose": {"position": {"x": 2, "y": 3, "z": 0}}}})
    assert (pose.x, pose.y, pose.theta) == (2.0, 3.0, 0.0)


@pytest.mark.parametrize("msg", [
    {},
    {"pose": {}},
    {"pose": {"pose": {"orientation": {"x": 0, "y": 0, "z": 0, "w": 1}}}},
    {"pose": {"pose": {"position": {"x": 1}}}},
    "not a message",
])
def test_decode_pose_rejects_missing_fields(msg) -> None:
    with pytest.raises(DecodeError):
        decode_pose(msg)


def test_decode_status() -> None:
    assert decode_status({"data": "docking"}) == "docking"
    assert decode_status({"data": ""}) == "N/A"
    assert decode_status({}) == "N/A"


def test_decode_frame_accepts_text_and_bytes() -> None:
    frame = '{"op": "publish", "topic": "/odom", "msg": {}}'
    assert decode_frame(frame)["topic"] == "/odom"
    assert decode_frame(frame.encode("utf-8"))["op"] == "publish"


@pytest.mark.parametrize("data", ["{not json", "[1, 2]", b"\xff\xfe"])
def test_decode_frame_rejects_garbage(data) -> None:
    with pytest.raises(DecodeError):
        decode_frame(data)


def test_envelopes_match_rosbridge_wire_format() -> None:
    assert build_subscribe("op_1", "/odom", "nav_msgs/Odometry", 200) == {
        "op": "subscribe",
        "id": "op_1",
        "topic": "/odom",
        "type": "nav_msgs/Odometry",
        "throttle_rate": 200,
    }
    assert build_unsubscribe("op_2", "/odom") == {"op": "unsubscribe", "id": "op_2", "topic": "/odom"}

    publish = build_publish("op_3", "/cmd_vel", "geometry_msgs/Twist", build_twist(0.2, -0.5))
    assert publish == {
        "op": "publish",
        "id": "op_3",
        "topic": "/cmd_vel",
        "msg": {"linear": {"x": 0.2, "y": 0, "z": 0}, "angular": {"x": 0, "y": 0, "z": -0.5}},
        "type": "geometry_msgs/Twist",
    }
    assert json.loads(encode_frame(publish)) == publish


def test_counter_ids_are_sequential() -> None:
    ids = CounterIdSource(prefix="req")
    assert [ids.next(), ids.next(), ids.next()] == ["req_1", "req_2", "req_3"]


def test_timestamp_ids_are_unique_and_well_formed() -> None:
    ids = TimestampIdSource(rng=random.Random(7))
    generated = [ids.next() for _ in range(50)]
    assert len(set(generated)) == 50
    for request_id in generated:
        prefix, millis, suffix = request_id.split("_")
        assert prefix == "op"
        assert millis.isdigit()
        assert len(suffix) == 9

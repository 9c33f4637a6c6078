import pytest

from utils.command_converter import CommandConverter


@pytest.mark.parametrize("command, expected", [
    ("move up", (0.2, 0.0)),
    ("move down", (-0.2, 0.0)),
    ("move left", (0.0, 0.5)),
    ("move right", (0.0, -0.5)),
    ("stop", (0.0, 0.0)),
    ("dance", (0.0, 0.0)),
])
def test_command_to_velocity(command, expected) -> None:
    assert CommandConverter.command_to_velocity(command) == expected


def test_speed_factor_scales_velocity() -> None:
    linear, angular = CommandConverter.command_to_velocity("move up", 0.5, linear=1.0, angular=2.0)
    assert (linear, angular) == (0.5, 0.0)

    linear, angular = CommandConverter.command_to_velocity("move left", 3.0, linear=1.0, angular=2.0)
    assert (linear, angular) == (0.0, 2.0)


def test_speed_percentage_to_factor() -> None:
    assert CommandConverter.speed_percentage_to_factor(50) == 0.5
    assert CommandConverter.speed_percentage_to_factor("25") == 0.25
    assert CommandConverter.speed_percentage_to_factor(150) == 1.0
    assert CommandConverter.speed_percentage_to_factor(-10) == 0.0
    assert CommandConverter.speed_percentage_to_factor(None) == 1.0

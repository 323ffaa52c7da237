"""
Test Rotation Dial Input

Pointer-to-angle conversion and drag session behaviour of the
AngularInputDevice.
"""

from unittest.mock import Mock

import pytest

from botanybot.control import AngularInputDevice, pointer_to_angle
from botanybot.core.types import shortest_angular_distance

CENTER = (100.0, 100.0)


def angle_at(x, y):
    return pointer_to_angle(x, y, *CENTER)


class TestPointerToAngle:
    """Test screen position to dial angle mapping"""

    @pytest.mark.parametrize("position,expected", [
        ((100, 50), 0),      # straight up
        ((150, 100), 90),    # right
        ((100, 150), 180),   # down
        ((50, 100), 270),    # left
        ((150, 50), 45),
        ((50, 50), 315),
    ])
    def test_cardinal_and_diagonal_positions(self, position, expected):
        assert angle_at(*position) == expected

    def test_center_returns_none(self):
        assert angle_at(*CENTER) is None

    def test_always_in_range(self):
        for x in range(0, 201, 7):
            for y in range(0, 201, 11):
                angle = angle_at(x, y)
                if angle is not None:
                    assert 0 <= angle <= 359

    def test_just_left_of_top_rounds_to_zero(self):
        # 359.7 degrees rounds up and wraps instead of producing 360
        angle = angle_at(100 - 0.5, 0)
        assert angle == 0


class TestAngularInputDevice:
    """Test drag session handling"""

    @pytest.fixture
    def dial(self):
        return AngularInputDevice()

    def test_updates_ignored_when_idle(self, dial):
        listener = Mock()
        dial.add_listener(listener)

        assert dial.update(150, 100, *CENTER) is None
        listener.assert_not_called()
        assert dial.angle == 0

    def test_drag_emits_in_order(self, dial):
        listener = Mock()
        dial.add_listener(listener)

        dial.begin()
        dial.update(150, 100, *CENTER)
        dial.update(100, 150, *CENTER)
        dial.update(50, 100, *CENTER)
        dial.end()

        assert [c.args[0] for c in listener.call_args_list] == [90, 180, 270]
        assert dial.angle == 270
        assert not dial.is_active

    def test_updates_after_end_ignored(self, dial):
        listener = Mock()
        dial.add_listener(listener)

        dial.begin()
        dial.update(150, 100, *CENTER)
        dial.end()
        dial.update(50, 100, *CENTER)

        listener.assert_called_once_with(90)

    def test_center_holds_previous_angle(self, dial):
        listener = Mock()
        dial.add_listener(listener)

        with dial.drag_session():
            dial.update(150, 100, *CENTER)
            assert dial.update(*CENTER, *CENTER) is None

        listener.assert_called_once_with(90)
        assert dial.angle == 90

    def test_seam_crossing_is_small_step(self, dial):
        emitted = []
        dial.add_listener(emitted.append)

        with dial.drag_session():
            dial.update(99.5, 0, *CENTER)   # just left of top
            dial.update(101, 0, *CENTER)    # just right of top
            dial.update(99, 0, *CENTER)

        steps = [shortest_angular_distance(a, b) for a, b in zip(emitted, emitted[1:])]
        assert all(abs(step) <= 2 for step in steps)

    def test_full_revolution_visits_all_quadrants(self, dial):
        emitted = []
        dial.add_listener(emitted.append)

        path = [(100, 50), (150, 100), (100, 150), (50, 100), (100, 50)]
        with dial.drag_session():
            for x, y in path:
                dial.update(x, y, *CENTER)

        assert emitted == [0, 90, 180, 270, 0]

    def test_drag_session_ends_on_exception(self, dial):
        with pytest.raises(RuntimeError):
            with dial.drag_session():
                assert dial.is_active
                raise RuntimeError("pointer lost")

        assert not dial.is_active

    def test_listener_failure_does_not_block_others(self, dial):
        failing = Mock(side_effect=ValueError("bad listener"))
        healthy = Mock()
        dial.add_listener(failing)
        dial.add_listener(healthy)

        with dial.drag_session():
            assert dial.update(150, 100, *CENTER) == 90

        healthy.assert_called_once_with(90)

    def test_remove_listener(self, dial):
        listener = Mock()
        dial.add_listener(listener)
        dial.remove_listener(listener)
        dial.remove_listener(listener)

        with dial.drag_session():
            dial.update(150, 100, *CENTER)

        listener.assert_not_called()

    def test_sync_moves_knob_silently(self):
        dial = AngularInputDevice(initial_angle=370)
        listener = Mock()
        dial.add_listener(listener)

        assert dial.angle == 10
        dial.sync(-45)

        assert dial.angle == 315
        listener.assert_not_called()

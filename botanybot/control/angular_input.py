"""
Rotation Dial Input

Converts pointer/touch positions on a circular widget into a normalized
rotation command (0-359 degrees, 0 = up, clockwise in screen space).
The device only emits angles; it never talks to the robot.
"""

import logging
import math
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from botanybot.core.types import normalize_angle

logger = logging.getLogger(__name__)

AngleListener = Callable[[int], None]


def pointer_to_angle(pointer_x: float, pointer_y: float,
                     center_x: float, center_y: float) -> Optional[int]:
    """
    Map a pointer position to a dial angle

    Screen coordinates grow downwards, so atan2 measures clockwise from
    the +x axis; adding 90 degrees puts 0 at the top of the widget.

    Returns:
        Angle in [0, 360), or None when the pointer sits exactly on the center
    """
    dx = pointer_x - center_x
    dy = pointer_y - center_y
    if dx == 0 and dy == 0:
        return None

    degrees = math.degrees(math.atan2(dy, dx)) + 90
    if degrees < 0:
        degrees += 360

    # Round half up; 359.5 rounds to 360 and wraps to 0
    return normalize_angle(math.floor(degrees + 0.5))


class AngularInputDevice:
    """
    Circular drag input emitting integer angles

    Updates only count between begin() and end(). Each update during a
    drag emits the new angle to every listener in the order the pointer
    events arrive. A pointer exactly on the center holds the last angle
    and emits nothing.
    """

    def __init__(self, initial_angle: int = 0):
        self._angle = normalize_angle(initial_angle)
        self._active = False
        self._listeners: List[AngleListener] = []

    @property
    def angle(self) -> int:
        """Last emitted (or initial) angle"""
        return self._angle

    @property
    def is_active(self) -> bool:
        return self._active

    def add_listener(self, listener: AngleListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AngleListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def sync(self, angle: int) -> None:
        """Move the knob without emitting (state changed elsewhere)"""
        self._angle = normalize_angle(angle)

    def begin(self) -> None:
        """Start a drag session"""
        if not self._active:
            logger.debug("Dial drag started")
        self._active = True

    def update(self, pointer_x: float, pointer_y: float,
               center_x: float, center_y: float) -> Optional[int]:
        """
        Feed a pointer position

        Returns:
            The emitted angle, or None if nothing was emitted
        """
        if not self._active:
            return None

        angle = pointer_to_angle(pointer_x, pointer_y, center_x, center_y)
        if angle is None:
            return None

        self._angle = angle
        self._emit(angle)
        return angle

    def end(self) -> None:
        """Terminate the drag session"""
        if self._active:
            logger.debug(f"Dial drag ended at {self._angle}°")
        self._active = False

    @contextmanager
    def drag_session(self) -> Iterator['AngularInputDevice']:
        """
        Scope a drag to a with-block

        The session ends on every exit path, including exceptions raised
        by listeners or by the caller.
        """
        self.begin()
        try:
            yield self
        finally:
            self.end()

    def _emit(self, angle: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(angle)
            except Exception as e:
                logger.error(f"Dial listener {listener!r} failed for {angle}°: {e}")

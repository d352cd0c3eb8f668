"""
Roaming motion controller.

Moves the overlay window around the work area of its display, bouncing
off the edges. Every tick:

1. Skip if the window is hidden
2. Read the work area (it can change when displays are re-arranged)
3. Advance the position by direction * speed
4. Reflect and clamp on X and Y independently
5. Commit the rounded position to the window
6. Tell listeners which way we are heading

Reflection is computed from the candidate position, so a window that
touches or crosses an edge bounces back on the very next tick.
"""

import logging
from dataclasses import dataclass
from numbers import Real
from typing import Callable, Optional, Protocol

from .timers import PeriodicTimer, Scheduler

logger = logging.getLogger(__name__)

# 20 Hz, smooth enough without keeping the CPU busy
TICK_INTERVAL = 0.05
DEFAULT_SPEED = 2


@dataclass(frozen=True)
class Rect:
    """Screen rectangle in pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class Direction:
    """
    Bounce signal: each component is -1 or +1.

    This is not a velocity; speed is applied separately.
    """
    x: int = 1
    y: int = 1

    def __post_init__(self):
        if self.x not in (-1, 1) or self.y not in (-1, 1):
            raise ValueError(f"Direction components must be -1 or +1, got ({self.x}, {self.y})")

    def flip_x(self) -> "Direction":
        return Direction(-self.x, self.y)

    def flip_y(self) -> "Direction":
        return Direction(self.x, -self.y)

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


class WindowHandle(Protocol):
    """What the controller needs from the hosting window."""

    def get_bounds(self) -> Rect: ...

    def set_position(self, x: int, y: int) -> None: ...

    def is_visible(self) -> bool: ...

    def get_work_area(self) -> Optional[Rect]: ...


def _reflect(position: float, size: float, low: float, high: float, sign: int) -> tuple[float, int]:
    if position <= low or position + size >= high:
        sign = -sign
        # Pinned to `low` when the window is larger than the area
        position = max(low, min(position, high - size))
    return position, sign


def step(bounds: Rect, work_area: Rect, direction: Direction, speed: float) -> tuple[int, int, Direction]:
    """
    Compute one roaming step.

    Args:
        bounds: Current window rectangle
        work_area: Usable area of the display the window is on
        direction: Current bounce direction
        speed: Pixels per tick

    Returns:
        (x, y, direction) - the rounded position to commit and the
        (possibly reflected) direction
    """
    new_x = bounds.x + direction.x * speed
    new_y = bounds.y + direction.y * speed

    new_x, dir_x = _reflect(new_x, bounds.width, work_area.left, work_area.right, direction.x)
    new_y, dir_y = _reflect(new_y, bounds.height, work_area.top, work_area.bottom, direction.y)

    return round(new_x), round(new_y), Direction(dir_x, dir_y)


class RoamingController:
    """
    Drives the window around the screen on a fixed tick.

    Owns the position and direction. Direction survives stop()/start(),
    so roaming resumes the way it was going.

    Attributes:
        window: The window being moved
        scheduler: Event loop (or fake clock) used for the tick
    """

    def __init__(
        self,
        window: WindowHandle,
        scheduler: Scheduler,
        interval: float = TICK_INTERVAL,
        direction: Optional[Direction] = None,
    ):
        self.window = window
        self.scheduler = scheduler
        self._timer = PeriodicTimer(scheduler, interval, self.tick)
        self._direction = direction or Direction(1, 1)
        self._speed: float = DEFAULT_SPEED
        self._position: Optional[tuple[int, int]] = None
        self._listeners: list[Callable[[Direction], None]] = []

    @property
    def running(self) -> bool:
        return self._timer.running

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def position(self) -> Optional[tuple[int, int]]:
        """Last committed position, None before the first tick."""
        return self._position

    def add_listener(self, callback: Callable[[Direction], None]):
        """Register a consumer of the movement signal."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Direction], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def start(self, speed: float = DEFAULT_SPEED, initial_direction: Optional[Direction] = None):
        """
        Start roaming.

        Args:
            speed: Pixels per tick, must be positive
            initial_direction: Replaces the current direction when given

        Raises:
            ValueError: If speed is not a positive number
        """
        if isinstance(speed, bool) or not isinstance(speed, Real) or speed <= 0:
            raise ValueError(f"Roaming speed must be a positive number, got {speed!r}")

        if self.running:
            return

        self._speed = speed
        if initial_direction is not None:
            self._direction = initial_direction

        self._timer.start()
        logger.info(f"🐾 Roaming started (speed={speed}px/tick, direction={self._direction.as_dict()})")

    def stop(self):
        """Stop roaming. Direction is kept for the next start()."""
        if not self.running:
            return
        self._timer.stop()
        logger.info("🛑 Roaming stopped")

    def tick(self):
        """Advance one step. Never raises."""
        try:
            if not self.window.is_visible():
                return

            work_area = self.window.get_work_area()
            if work_area is None:
                return

            bounds = self.window.get_bounds()
            x, y, direction = step(bounds, work_area, self._direction, self._speed)
            self.window.set_position(x, y)
        except Exception as e:
            logger.debug(f"Roaming tick skipped: {e}")
            return

        self._direction = direction
        self._position = (x, y)
        self._emit(direction)

    def _emit(self, direction: Direction):
        for listener in list(self._listeners):
            try:
                listener(direction)
            except Exception as e:
                logger.warning(f"Movement listener error: {e}")

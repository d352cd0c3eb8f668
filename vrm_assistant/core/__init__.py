"""
Core of the desktop assistant: window roaming and the character's
animation state. Nothing in here knows about pywebview or HTTP.
"""

from .timers import PeriodicTimer, PendingRevert, Scheduler
from .motion import (
    DEFAULT_SPEED,
    TICK_INTERVAL,
    Direction,
    Rect,
    RoamingController,
    WindowHandle,
    step,
)
from .animation import (
    MOVING_REVERT_SECONDS,
    TALKING_REVERT_SECONDS,
    AnimationState,
    CharacterStateMachine,
    css_classes,
    status_label,
)

__all__ = [
    # Timers
    "PeriodicTimer",
    "PendingRevert",
    "Scheduler",
    # Motion
    "DEFAULT_SPEED",
    "TICK_INTERVAL",
    "Direction",
    "Rect",
    "RoamingController",
    "WindowHandle",
    "step",
    # Animation
    "MOVING_REVERT_SECONDS",
    "TALKING_REVERT_SECONDS",
    "AnimationState",
    "CharacterStateMachine",
    "css_classes",
    "status_label",
]

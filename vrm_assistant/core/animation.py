"""
Character animation state machine.

The character is always in exactly one of five states. Events push it
into a state and some states fall back to idle on their own:

    movement signal  -> moving    (idle 1s after the LAST signal)
    chat start       -> thinking  (held until the response arrives)
    chat response    -> talking   (idle 2s after entry)
    happy trigger    -> happy     (held, or idle after the delay the caller asks for)

There is one pending-revert slot. Every transition replaces it, so a
burst of movement signals keeps pushing the revert back, and a chat
response during movement takes over with its own countdown.

Movement signals do not interrupt `thinking`: the character keeps
thinking while the window roams until the reply (or a failure) arrives.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from .motion import Direction
from .timers import PendingRevert, Scheduler

logger = logging.getLogger(__name__)

MOVING_REVERT_SECONDS = 1.0
TALKING_REVERT_SECONDS = 2.0


class AnimationState(str, Enum):
    IDLE = "idle"
    TALKING = "talking"
    THINKING = "thinking"
    HAPPY = "happy"
    MOVING = "moving"


STATUS_LABELS = {
    AnimationState.IDLE: "Ready",
    AnimationState.MOVING: "Moving",
    AnimationState.THINKING: "Thinking",
    AnimationState.TALKING: "Talking",
    AnimationState.HAPPY: "Happy",
}

CHARACTER_CLASS = "character"


def status_label(state: AnimationState) -> str:
    """Text shown under the character for a state."""
    return STATUS_LABELS.get(state, "Ready")


def css_classes(state: AnimationState) -> list[str]:
    """Class list the 2D fallback character carries in a state."""
    return [CHARACTER_CLASS, AnimationState(state).value]


class CharacterStateMachine:
    """
    Holds the current animation state and its pending revert.

    All entry points are meant to be called from the event loop thread.
    Listeners receive the new state whenever it changes.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        moving_revert: float = MOVING_REVERT_SECONDS,
        talking_revert: float = TALKING_REVERT_SECONDS,
    ):
        self._state = AnimationState.IDLE
        self._revert = PendingRevert(scheduler)
        self._moving_revert = moving_revert
        self._talking_revert = talking_revert
        self._listeners: list[Callable[[AnimationState], None]] = []

    @property
    def state(self) -> AnimationState:
        return self._state

    @property
    def status_label(self) -> str:
        return status_label(self._state)

    @property
    def revert_pending(self) -> bool:
        return self._revert.pending

    def add_listener(self, callback: Callable[[AnimationState], None]):
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[AnimationState], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ==================== Entry points ====================

    def on_movement_update(self, direction: Optional[Direction] = None):
        """The window moved; show the character as moving for a moment."""
        if self._state is AnimationState.THINKING:
            return
        self._transition(AnimationState.MOVING, self._moving_revert)

    def on_chat_start(self):
        """A chat request was sent."""
        self._transition(AnimationState.THINKING)

    def on_chat_response(self):
        """A chat reply arrived."""
        self._transition(AnimationState.TALKING, self._talking_revert)

    def on_chat_failed(self):
        """The chat request failed; stop thinking."""
        self._transition(AnimationState.IDLE)

    def trigger_happy(self, revert_after: Optional[float] = None):
        """Show happiness, held until the next event unless `revert_after` is given."""
        self._transition(AnimationState.HAPPY, revert_after)

    def reset(self):
        self._transition(AnimationState.IDLE)

    def dispose(self):
        self._revert.cancel()
        self._listeners.clear()

    # ==================== Internals ====================

    def _transition(self, state: AnimationState, revert_after: Optional[float] = None):
        callback = self._revert_to_idle if revert_after is not None else None
        self._revert.replace(revert_after, callback)
        self._set_state(state)

    def _revert_to_idle(self):
        self._set_state(AnimationState.IDLE)

    def _set_state(self, state: AnimationState):
        if state is self._state:
            return
        logger.debug(f"Animation state: {self._state.value} -> {state.value}")
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning(f"State listener error: {e}")

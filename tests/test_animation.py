"""Tests for the character animation state machine."""

import pytest

from vrm_assistant.core.animation import (
    AnimationState,
    CharacterStateMachine,
    css_classes,
    status_label,
)
from vrm_assistant.core.motion import Direction


@pytest.fixture
def machine(scheduler):
    sm = CharacterStateMachine(scheduler)
    yield sm
    sm.dispose()


@pytest.fixture
def transitions(machine):
    seen = []
    machine.add_listener(seen.append)
    return seen


class TestLabels:
    """Tests for status labels and class lists."""

    @pytest.mark.parametrize("state,label", [
        (AnimationState.IDLE, "Ready"),
        (AnimationState.MOVING, "Moving"),
        (AnimationState.THINKING, "Thinking"),
        (AnimationState.TALKING, "Talking"),
        (AnimationState.HAPPY, "Happy"),
    ])
    def test_status_label(self, state, label):
        assert status_label(state) == label

    def test_css_classes_include_state(self):
        assert css_classes(AnimationState.TALKING) == ["character", "talking"]
        assert css_classes(AnimationState.IDLE) == ["character", "idle"]


class TestMovement:
    """Tests for the movement signal."""

    def test_starts_idle(self, machine):
        assert machine.state is AnimationState.IDLE
        assert machine.status_label == "Ready"
        assert not machine.revert_pending

    def test_movement_reverts_after_one_second(self, machine, scheduler):
        machine.on_movement_update(Direction(1, 1))
        assert machine.state is AnimationState.MOVING

        scheduler.advance(0.99)
        assert machine.state is AnimationState.MOVING
        scheduler.advance(0.01)
        assert machine.state is AnimationState.IDLE

    def test_revert_counts_from_last_signal(self, machine, scheduler):
        machine.on_movement_update()
        scheduler.advance(0.5)
        machine.on_movement_update()

        scheduler.advance(0.9)
        assert machine.state is AnimationState.MOVING
        scheduler.advance(0.1)
        assert machine.state is AnimationState.IDLE

    def test_continuous_roaming_stays_moving(self, machine, scheduler):
        for _ in range(100):
            machine.on_movement_update()
            scheduler.advance(0.05)

        assert machine.state is AnimationState.MOVING

    def test_movement_ignored_while_thinking(self, machine, scheduler):
        machine.on_chat_start()

        machine.on_movement_update()
        scheduler.advance(5.0)

        assert machine.state is AnimationState.THINKING
        assert not machine.revert_pending

    def test_movement_overrides_happy(self, machine):
        machine.trigger_happy()

        machine.on_movement_update()

        assert machine.state is AnimationState.MOVING


class TestChat:
    """Tests for the chat transitions."""

    def test_chat_cycle(self, machine, scheduler, transitions):
        machine.on_chat_start()
        machine.on_chat_response()
        scheduler.advance(2.0)

        assert transitions == [
            AnimationState.THINKING,
            AnimationState.TALKING,
            AnimationState.IDLE,
        ]

    def test_talking_holds_for_two_seconds(self, machine, scheduler):
        machine.on_chat_response()

        scheduler.advance(1.99)
        assert machine.state is AnimationState.TALKING
        scheduler.advance(0.01)
        assert machine.state is AnimationState.IDLE

    def test_response_replaces_moving_revert(self, machine, scheduler):
        """The moving countdown must not cut talking short."""
        machine.on_movement_update()
        scheduler.advance(0.5)
        machine.on_chat_response()

        scheduler.advance(1.0)
        assert machine.state is AnimationState.TALKING
        scheduler.advance(1.0)
        assert machine.state is AnimationState.IDLE

    def test_chat_start_cancels_pending_revert(self, machine, scheduler):
        machine.on_chat_response()
        machine.on_chat_start()

        scheduler.advance(10.0)

        assert machine.state is AnimationState.THINKING

    def test_chat_failure_returns_to_idle(self, machine):
        machine.on_chat_start()

        machine.on_chat_failed()

        assert machine.state is AnimationState.IDLE

    def test_happy_has_no_revert(self, machine, scheduler):
        machine.trigger_happy()

        scheduler.advance(60.0)

        assert machine.state is AnimationState.HAPPY
        machine.reset()
        assert machine.state is AnimationState.IDLE

    def test_happy_with_timeout(self, machine, scheduler):
        machine.trigger_happy(3.0)

        scheduler.advance(2.9)
        assert machine.state is AnimationState.HAPPY
        scheduler.advance(0.1)
        assert machine.state is AnimationState.IDLE

    def test_chat_during_timed_happy_keeps_thinking(self, machine, scheduler):
        machine.trigger_happy(3.0)
        machine.on_chat_start()

        scheduler.advance(10.0)

        assert machine.state is AnimationState.THINKING


class TestListeners:
    """Tests for state change notifications."""

    def test_only_changes_are_reported(self, machine, transitions):
        machine.on_movement_update()
        machine.on_movement_update()
        machine.on_movement_update()

        assert transitions == [AnimationState.MOVING]

    def test_listener_error_is_contained(self, machine, transitions):
        def broken(state):
            raise RuntimeError("render failed")

        machine.add_listener(broken)
        machine.trigger_happy()

        assert machine.state is AnimationState.HAPPY
        assert transitions == [AnimationState.HAPPY]

    def test_dispose_cancels_revert(self, machine, scheduler, transitions):
        machine.on_movement_update()

        machine.dispose()
        scheduler.advance(5.0)

        assert machine.state is AnimationState.MOVING
        assert scheduler.pending == []

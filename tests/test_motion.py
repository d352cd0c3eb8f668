"""Tests for the roaming step function and controller."""

import pytest

from vrm_assistant.core.motion import (
    TICK_INTERVAL,
    Direction,
    Rect,
    RoamingController,
    step,
)

from .conftest import FakeWindow

WORK_AREA = Rect(0, 0, 1000, 800)


# =============================================================================
# step()
# =============================================================================


class TestStep:
    """Tests for a single roaming step."""

    def test_moves_diagonally(self):
        x, y, direction = step(Rect(100, 100, 300, 400), WORK_AREA, Direction(1, 1), 2)

        assert (x, y) == (102, 102)
        assert direction == Direction(1, 1)

    def test_first_tick_from_origin(self):
        """A window at the origin heads away from the corner."""
        x, y, direction = step(Rect(0, 0, 300, 400), WORK_AREA, Direction(1, 1), 2)

        assert (x, y) == (2, 2)
        assert direction == Direction(1, 1)

    def test_reflects_at_right_edge(self):
        x, y, direction = step(Rect(695, 100, 300, 400), WORK_AREA, Direction(1, 1), 5)

        assert x == 700
        assert direction.x == -1
        assert direction.y == 1

    def test_touching_edge_counts_as_hit(self):
        x, _, direction = step(Rect(699, 100, 300, 400), WORK_AREA, Direction(1, 1), 2)

        assert x == 700
        assert direction.x == -1

    def test_reflects_at_left_edge(self):
        x, _, direction = step(Rect(1, 100, 300, 400), WORK_AREA, Direction(-1, 1), 2)

        assert x == 0
        assert direction.x == 1

    def test_axes_reflect_independently(self):
        x, y, direction = step(Rect(100, 399, 300, 400), WORK_AREA, Direction(1, 1), 2)

        assert (x, y) == (102, 400)
        assert direction == Direction(1, -1)

    def test_window_larger_than_area_is_pinned(self):
        x, y, _ = step(Rect(10, 10, 1200, 400), WORK_AREA, Direction(1, 1), 2)

        assert x == 0
        assert y == 12

    def test_work_area_with_offset(self):
        area = Rect(1920, 0, 1280, 1024)

        x, _, direction = step(Rect(1919, 100, 300, 400), area, Direction(-1, 1), 3)

        assert x == 1920
        assert direction.x == 1

    def test_fractional_speed_is_rounded(self):
        x, y, _ = step(Rect(100, 100, 300, 400), WORK_AREA, Direction(1, -1), 1.6)

        assert (x, y) == (102, 98)


class TestDirection:
    """Tests for the bounce direction."""

    def test_flip(self):
        assert Direction(1, 1).flip_x() == Direction(-1, 1)
        assert Direction(1, 1).flip_y() == Direction(1, -1)

    def test_rejects_non_unit_components(self):
        with pytest.raises(ValueError):
            Direction(2, 1)
        with pytest.raises(ValueError):
            Direction(1, 0)


# =============================================================================
# RoamingController
# =============================================================================


class TestRoamingController:
    """Tests for RoamingController."""

    def test_tick_moves_window(self, scheduler, window):
        controller = RoamingController(window, scheduler)

        controller.start(speed=2)
        scheduler.advance(TICK_INTERVAL)

        assert window.moves == [(2, 2)]
        assert controller.position == (2, 2)

    def test_stays_inside_work_area(self, scheduler):
        window = FakeWindow(x=37, y=511, width=300, height=250)
        controller = RoamingController(window, scheduler)

        controller.start(speed=7)
        for _ in range(2000):
            scheduler.advance(TICK_INTERVAL)
            assert 0 <= window.x <= 1000 - 300
            assert 0 <= window.y <= 800 - 250

        assert len(window.moves) == 2000

    def test_start_twice_is_noop(self, scheduler, window):
        controller = RoamingController(window, scheduler)

        controller.start(speed=2)
        controller.start(speed=9)
        scheduler.advance(TICK_INTERVAL)

        assert controller.speed == 2
        assert len(window.moves) == 1

    def test_stop_when_not_running_is_noop(self, scheduler, window):
        controller = RoamingController(window, scheduler)

        controller.stop()

        assert not controller.running

    def test_stop_halts_ticks(self, scheduler, window):
        controller = RoamingController(window, scheduler)

        controller.start()
        scheduler.advance(TICK_INTERVAL * 3)
        controller.stop()
        scheduler.advance(1.0)

        assert len(window.moves) == 3

    def test_direction_survives_restart(self, scheduler):
        window = FakeWindow(x=699, y=100)
        controller = RoamingController(window, scheduler)

        controller.start(speed=2)
        scheduler.advance(TICK_INTERVAL)
        controller.stop()
        assert controller.direction == Direction(-1, 1)

        controller.start(speed=2)
        scheduler.advance(TICK_INTERVAL)

        assert window.moves[-1] == (698, 104)

    def test_initial_direction_overrides(self, scheduler):
        window = FakeWindow(x=100, y=100)
        controller = RoamingController(window, scheduler)

        controller.start(speed=2, initial_direction=Direction(-1, -1))
        scheduler.advance(TICK_INTERVAL)

        assert window.moves == [(98, 98)]

    @pytest.mark.parametrize("speed", [0, -1, True, "2", None])
    def test_rejects_invalid_speed(self, scheduler, window, speed):
        controller = RoamingController(window, scheduler)

        with pytest.raises(ValueError):
            controller.start(speed=speed)
        assert not controller.running

    def test_hidden_window_is_not_moved(self, scheduler, window):
        signals = []
        controller = RoamingController(window, scheduler)
        controller.add_listener(signals.append)
        window.visible = False

        controller.start()
        scheduler.advance(TICK_INTERVAL * 5)

        assert window.moves == []
        assert signals == []
        assert controller.running

    def test_missing_work_area_skips_tick(self, scheduler):
        window = FakeWindow(work_area=None)
        controller = RoamingController(window, scheduler)

        controller.start()
        scheduler.advance(TICK_INTERVAL * 3)

        assert window.moves == []

    def test_window_errors_do_not_stop_roaming(self, scheduler, window):
        signals = []
        controller = RoamingController(window, scheduler)
        controller.add_listener(signals.append)

        def broken_set_position(x, y):
            raise RuntimeError("window destroyed")

        window.set_position = broken_set_position
        controller.start()
        scheduler.advance(TICK_INTERVAL * 3)

        assert signals == []
        assert controller.position is None
        assert controller.direction == Direction(1, 1)
        assert controller.running

    def test_work_area_is_read_every_tick(self, scheduler):
        window = FakeWindow(x=500, y=100)
        controller = RoamingController(window, scheduler)

        controller.start(speed=2)
        scheduler.advance(TICK_INTERVAL)
        window.work_area = Rect(0, 0, 800, 800)
        scheduler.advance(TICK_INTERVAL)

        assert window.x == 500
        assert controller.direction.x == -1

    def test_user_drag_is_respected(self, scheduler, window):
        controller = RoamingController(window, scheduler)

        controller.start(speed=2)
        scheduler.advance(TICK_INTERVAL)
        window.x, window.y = 300, 300
        scheduler.advance(TICK_INTERVAL)

        assert window.moves[-1] == (302, 302)


class TestMovementSignal:
    """Tests for the movement listeners."""

    def test_listener_sees_committed_position(self, scheduler, window):
        seen = []
        controller = RoamingController(window, scheduler)
        controller.add_listener(lambda d: seen.append((d, window.x, window.y)))

        controller.start()
        scheduler.advance(TICK_INTERVAL)

        assert seen == [(Direction(1, 1), 2, 2)]

    def test_listener_error_does_not_break_others(self, scheduler, window):
        seen = []
        controller = RoamingController(window, scheduler)

        def broken(direction):
            raise RuntimeError("boom")

        controller.add_listener(broken)
        controller.add_listener(seen.append)
        controller.start()
        scheduler.advance(TICK_INTERVAL * 2)

        assert len(seen) == 2
        assert controller.running

    def test_remove_listener(self, scheduler, window):
        seen = []
        controller = RoamingController(window, scheduler)
        controller.add_listener(seen.append)
        controller.remove_listener(seen.append)

        controller.start()
        scheduler.advance(TICK_INTERVAL)

        assert seen == []

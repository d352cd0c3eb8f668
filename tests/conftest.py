"""
Shared test fixtures.

The core only schedules through `call_later`, so tests drive time with a
manual clock instead of sleeping.
"""

from typing import Optional

import pytest

from vrm_assistant.core.motion import Rect
from vrm_assistant.llm.base import BaseLLM, LLMError, LLMResponse, Message
from vrm_assistant.settings import SettingsStore


class FakeHandle:
    def __init__(self, when, seq, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock with the call_later() signature of an asyncio loop."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._handles: list[FakeHandle] = []

    def call_later(self, delay, callback, *args):
        self._seq += 1
        handle = FakeHandle(self.now + delay, self._seq, callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds: float):
        """Move time forward, running everything that comes due in order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target


class FakeWindow:
    """In-memory WindowHandle."""

    def __init__(self, x=0, y=0, width=300, height=400, work_area: Optional[Rect] = Rect(0, 0, 1000, 800)):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.work_area = work_area
        self.visible = True
        self.moves: list[tuple[int, int]] = []

    def get_bounds(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def set_position(self, x, y):
        self.x = x
        self.y = y
        self.moves.append((x, y))

    def is_visible(self) -> bool:
        return self.visible

    def get_work_area(self) -> Optional[Rect]:
        return self.work_area


class FakeLLM(BaseLLM):
    """Records requests and answers from a script."""

    model = "fake-model"

    def __init__(self, replies=None, error: Optional[Exception] = None):
        self.replies = list(replies or ["Woof!"])
        self.error = error
        self.requests: list[list[Message]] = []
        self.closed = False

    async def chat(self, messages):
        self.requests.append(list(messages))
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.replies.pop(0) if self.replies else "Woof!", model=self.model)

    async def close(self):
        self.closed = True


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def window():
    return FakeWindow()


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(tmp_path / "settings.yaml")


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def failing_llm():
    return FakeLLM(error=LLMError("HTTP 401: Unauthorized", status_code=401))

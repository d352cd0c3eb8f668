"""
Application context.

One object owns everything that lives as long as the app does: settings,
the event loop, the character state machine, the roaming controller and
the chat manager. It is created once, handed to whoever needs it, and
shut down explicitly.

All core work runs on the context's event loop. Code running on other
threads (pywebview API calls, tray menu, hotkeys) goes through call()
or submit().
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

from vrm_assistant.avatar.renderers import Renderer
from vrm_assistant.chat.manager import ChatManager
from vrm_assistant.core.animation import CharacterStateMachine
from vrm_assistant.core.motion import RoamingController, WindowHandle
from vrm_assistant.core.timers import Scheduler
from vrm_assistant.llm.base import BaseLLM, Message
from vrm_assistant.llm.openai_provider import create_llm
from vrm_assistant.settings import SettingsStore
from vrm_assistant.utils.character_loader import (
    DEFAULT_CHARACTER,
    build_chat_config,
    load_character_preset,
    resolve_model_path,
)

logger = logging.getLogger(__name__)

LLM_SETTINGS = {"apiProvider", "openaiApiKey", "openrouterApiKey", "model"}
LLM_CLOSE_POLL = 0.1


class AppContext:
    """
    Explicit home for the application's shared state.

    Attributes:
        settings: Persistent settings
        scheduler: Event loop (or fake clock in tests) running the core
        state_machine: Character animation state
        chat: Conversation manager
        roaming: Roaming controller, set by attach_window()
        renderer: Character renderer, set by attach_renderer()
        preset: Loaded character preset
    """

    def __init__(
        self,
        settings: SettingsStore,
        scheduler: Scheduler,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        loop_thread: Optional[threading.Thread] = None,
    ):
        self.settings = settings
        self.scheduler = scheduler
        self.loop = loop
        self._loop_thread = loop_thread
        self._shut_down = False

        self.preset = self._load_preset()
        self.state_machine = CharacterStateMachine(scheduler)
        self.chat = ChatManager(create_llm(settings.all()), build_chat_config(self.preset))
        self.chat.on_chat_start = self.state_machine.on_chat_start
        self.chat.on_chat_response = self.state_machine.on_chat_response
        self.chat.on_chat_error = lambda message: self.state_machine.on_chat_failed()

        self.roaming: Optional[RoamingController] = None
        self.renderer: Optional[Renderer] = None

    @classmethod
    def create(
        cls,
        settings: SettingsStore,
        scheduler: Optional[Scheduler] = None,
        window: Optional[WindowHandle] = None,
    ) -> "AppContext":
        """
        Build the context.

        Without a scheduler, a fresh asyncio loop is started in a daemon
        thread and used as the scheduler. A window, when given, is
        attached right away.
        """
        if scheduler is not None:
            context = cls(settings, scheduler)
            if window is not None:
                context.attach_window(window)
            return context

        loop = asyncio.new_event_loop()

        def run_loop():
            asyncio.set_event_loop(loop)
            loop.run_forever()

        thread = threading.Thread(target=run_loop, name="assistant-loop", daemon=True)
        thread.start()
        logger.info("✅ Event loop started in background thread")
        context = cls(settings, loop, loop=loop, loop_thread=thread)
        if window is not None:
            context.attach_window(window)
        return context

    def _load_preset(self) -> dict:
        name = self.settings.get("character") or DEFAULT_CHARACTER
        preset = load_character_preset(name)
        if preset is None and name != DEFAULT_CHARACTER:
            preset = load_character_preset(DEFAULT_CHARACTER)
        return preset or {}

    @property
    def model_path(self) -> Optional[Path]:
        return resolve_model_path(self.preset)

    # ==================== Thread marshalling ====================

    def call(self, fn: Callable[..., Any], *args: Any):
        """Run fn(*args) on the loop thread."""
        if self.loop is None:
            fn(*args)
        else:
            self.loop.call_soon_threadsafe(fn, *args)

    def submit(self, coro: Coroutine) -> Future:
        """Schedule a coroutine on the loop from another thread."""
        if self.loop is None:
            raise RuntimeError("No event loop running")
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    # ==================== Wiring ====================

    def attach_window(self, window: WindowHandle):
        """Create the roaming controller for the window."""
        self.roaming = RoamingController(window, self.scheduler)
        self.roaming.add_listener(self.state_machine.on_movement_update)
        if self.settings.get("roamingEnabled"):
            self.call(self.set_roaming, True)

    def attach_renderer(self, renderer: Renderer):
        """Make `renderer` follow the character state. Loop thread only."""
        if self.renderer is not None:
            self.state_machine.remove_listener(self.renderer.apply_state)
        self.renderer = renderer
        self.state_machine.add_listener(renderer.apply_state)
        renderer.apply_state(self.state_machine.state)

    # ==================== Operations (loop thread) ====================

    def set_roaming(self, enabled: bool):
        if self.roaming is None:
            return
        if enabled:
            try:
                self.roaming.start(self.settings.get("roamingSpeed"))
            except ValueError as e:
                logger.error(f"Cannot start roaming: {e}")
        else:
            self.roaming.stop()

    def toggle_roaming(self) -> bool:
        """Flip roamingEnabled, persist it, and return the new value."""
        enabled = not self.settings.get("roamingEnabled")
        self.update_setting("roamingEnabled", enabled)
        return enabled

    def update_setting(self, key: str, value: Any):
        """
        Persist a setting and apply it to the running app.

        Raises:
            ValueError: If the value is invalid
        """
        self.update_settings({key: value})

    def update_settings(self, values: dict):
        """
        Persist several settings at once and apply them.

        The chat backend is rebuilt at most once, however many of the
        provider/key/model settings changed.

        Raises:
            ValueError: If any value is invalid; nothing is changed then
        """
        self.settings.update(values)

        if "roamingSpeed" in values:
            self.call(self._restart_roaming)
        if "roamingEnabled" in values:
            self.call(self.set_roaming, values["roamingEnabled"])
        if LLM_SETTINGS & set(values):
            self.call(self._reload_llm)

    def _restart_roaming(self):
        if self.roaming is None or not self.roaming.running:
            return
        # Speed is fixed per session; direction carries over
        self.roaming.stop()
        self.set_roaming(True)

    def _reload_llm(self):
        old = self.chat.llm
        self.chat.set_llm(create_llm(self.settings.all()))
        self._close_llm(old)

    def _close_llm(self, llm: Optional[BaseLLM]):
        if llm is None or self.loop is None or self.loop.is_closed():
            return
        self.submit(self._close_when_idle(llm))

    async def _close_when_idle(self, llm: BaseLLM):
        # A reply may still be in flight on the old client
        while self.chat.is_typing:
            await asyncio.sleep(LLM_CLOSE_POLL)
        await llm.close()

    async def send_chat(self, text: str) -> Message:
        return await self.chat.send_message(text)

    # ==================== Lifecycle ====================

    def shutdown(self):
        """Stop roaming, cancel timers, close the LLM client and the loop."""
        if self._shut_down:
            return
        self._shut_down = True
        logger.info("🛑 Shutting down...")

        if self.loop is None:
            self._teardown_core()
            return

        done = threading.Event()

        def teardown():
            self._teardown_core()
            done.set()

        self.loop.call_soon_threadsafe(teardown)
        done.wait(timeout=2)

        if self.chat.llm is not None:
            try:
                self.submit(self.chat.llm.close()).result(timeout=2)
            except Exception as e:
                logger.debug(f"LLM close error: {e}")

        self.loop.call_soon_threadsafe(self.loop.stop)
        if self._loop_thread and self._loop_thread.is_alive():
            self._loop_thread.join(timeout=2)
        if not self.loop.is_running():
            self.loop.close()

    def _teardown_core(self):
        if self.roaming is not None:
            self.roaming.stop()
        self.state_machine.dispose()

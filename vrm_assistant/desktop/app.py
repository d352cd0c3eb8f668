"""
Desktop Assistant Application

A desktop companion that shows a VRM character (or a 2D fallback) in a
small transparent overlay window, with a chat panel talking to
OpenAI/OpenRouter. The window can roam around the screen on its own.

Features:
- Transparent, frameless, always-on-top window
- Character animation that follows roaming and chat activity
- System tray with quick actions
- Global hotkeys (F12 show/hide, F10 toggle roaming)
"""

import logging
import sys
import threading
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from vrm_assistant.avatar.renderers import probe_capabilities, select_renderer
from vrm_assistant.chat.manager import ChatError
from vrm_assistant.desktop.context import AppContext
from vrm_assistant.desktop.window import WEBVIEW_AVAILABLE, WebviewWindow
from vrm_assistant.settings import SettingsStore

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).parent.parent

# Optional imports with fallbacks
if WEBVIEW_AVAILABLE:
    import webview

try:
    from pynput import keyboard
    PYNPUT_AVAILABLE = True
except ImportError:
    PYNPUT_AVAILABLE = False
    logger.warning("pynput not installed. Hotkeys disabled. Install with: pip install pynput")

try:
    import pystray
    from PIL import Image
    TRAY_AVAILABLE = True
except ImportError:
    TRAY_AVAILABLE = False
    logger.warning("pystray/PIL not installed. System tray disabled. Install with: pip install pystray pillow")

CHAT_TIMEOUT = 90.0
PET_HAPPY_SECONDS = 3.0


@dataclass
class DesktopConfig:
    """Configuration for the desktop window."""
    # Window settings
    width: int = 300
    height: int = 400
    x: int = 100
    y: int = 100
    frameless: bool = True
    on_top: bool = True
    transparent: bool = True

    # Features
    enable_hotkeys: bool = True
    enable_tray: bool = True

    # Paths
    html_path: str = ""
    icon_path: str = ""

    # Debug
    debug: bool = False

    def __post_init__(self):
        if not self.html_path:
            self.html_path = str(PACKAGE_ROOT / "frontend" / "index.html")
        if not self.icon_path:
            self.icon_path = str(PACKAGE_ROOT / "assets" / "tray-icon.png")

    @classmethod
    def from_settings(cls, settings: SettingsStore, **overrides: Any) -> "DesktopConfig":
        bounds = settings.get("windowBounds")
        values = {
            "width": bounds["width"],
            "height": bounds["height"],
            "x": bounds["x"],
            "y": bounds["y"],
            "on_top": settings.get("alwaysOnTop"),
        }
        values.update(overrides)
        return cls(**values)


class DesktopAssistant:
    """
    Main desktop application.

    Owns the pywebview window, tray icon and hotkey listener; everything
    else lives in the AppContext.
    """

    def __init__(self, context: AppContext, config: Optional[DesktopConfig] = None):
        self.context = context
        self.config = config or DesktopConfig.from_settings(context.settings)

        # Components
        self.window: Optional[WebviewWindow] = None
        self.tray = None
        self.hotkey_listener = None

        # State
        self._ready = threading.Event()
        self._stopping = False

        logger.info("DesktopAssistant initialized")

    def start(self):
        """Start the assistant. Blocks until the window is closed."""
        if not WEBVIEW_AVAILABLE:
            logger.error("pywebview is required! Install with: pip install pywebview")
            return

        if self.config.enable_tray and TRAY_AVAILABLE:
            self._start_tray()

        if self.config.enable_hotkeys and PYNPUT_AVAILABLE:
            self._start_hotkeys()

        # Start webview (blocking)
        self._start_window()

    def stop(self):
        """Save the window position and tear everything down."""
        if self._stopping:
            return
        self._stopping = True

        if self.window and not self.window.closed:
            try:
                bounds = self.window.get_bounds()
                self.context.settings.set("windowBounds", {
                    "x": int(bounds.x), "y": int(bounds.y),
                    "width": int(bounds.width), "height": int(bounds.height),
                })
            except Exception as e:
                logger.warning(f"Could not save window bounds: {e}")

        self.context.shutdown()

        if self.tray:
            self.tray.stop()

        if self.hotkey_listener:
            self.hotkey_listener.stop()

        if self.window and not self.window.closed:
            self.window.window.destroy()

    def _start_window(self):
        """Create and start the webview window."""
        html_path = Path(self.config.html_path)
        if not html_path.exists():
            raise FileNotFoundError(f"HTML file not found: {html_path}")

        logger.info(f"Loading: {html_path.as_uri()}")

        native = webview.create_window(
            title="VRM Desktop Assistant",
            url=html_path.as_uri(),
            js_api=DesktopAPI(self),
            width=self.config.width,
            height=self.config.height,
            x=self.config.x,
            y=self.config.y,
            frameless=self.config.frameless,
            easy_drag=True,
            on_top=self.config.on_top,
            transparent=self.config.transparent,
            resizable=False,
        )

        self.window = WebviewWindow(native)
        native.events.loaded += self._on_window_loaded
        native.events.closing += self._on_window_closing
        native.events.closed += self._on_window_closed

        self.context.attach_window(self.window)

        webview.start(
            debug=self.config.debug,
            gui='gtk' if sys.platform == 'linux' else None
        )

    def _start_tray(self):
        """Start the system tray icon."""
        def create_tray():
            icon_path = Path(self.config.icon_path)
            if icon_path.exists():
                image = Image.open(icon_path)
            else:
                image = Image.new('RGB', (64, 64), color=(255, 182, 193))

            menu = pystray.Menu(
                pystray.MenuItem("Show/Hide (F12)", self.toggle_visibility, default=True),
                pystray.MenuItem("Toggle Roaming (F10)", self.toggle_roaming),
                pystray.Menu.SEPARATOR,
                pystray.MenuItem("Settings...", self.open_settings),
                pystray.Menu.SEPARATOR,
                pystray.MenuItem("Quit", self.stop)
            )

            self.tray = pystray.Icon("VRM Assistant", image, "VRM Desktop Assistant", menu)
            self.tray.run()

        thread = threading.Thread(target=create_tray, daemon=True)
        thread.start()

    def _start_hotkeys(self):
        """Start global hotkey listener."""
        def on_press(key):
            try:
                if key == keyboard.Key.f12:
                    self.toggle_visibility()
                elif key == keyboard.Key.f10:
                    self.toggle_roaming()
            except Exception as e:
                logger.error(f"Hotkey error: {e}")

        self.hotkey_listener = keyboard.Listener(on_press=on_press)
        self.hotkey_listener.daemon = True
        self.hotkey_listener.start()
        logger.info("Hotkeys: F12=toggle visibility, F10=toggle roaming")

    # ==================== Event Handlers ====================

    def _on_window_loaded(self):
        """Pick the renderer once the page can answer the probe."""
        capabilities = probe_capabilities(self.window.evaluate_js, self.context.model_path)
        renderer = select_renderer(capabilities, self.window.evaluate_js)

        if renderer.name == "3d":
            model_path = self.context.model_path
            renderer.setup(model_path.as_uri() if capabilities.model_available else None)
        else:
            image = self.context.preset.get("fallback_image")
            image_path = PACKAGE_ROOT / image if image else None
            renderer.setup(image_path.as_uri() if image_path and image_path.exists() else None)

        self.context.call(self.context.attach_renderer, renderer)
        self._ready.set()
        logger.info(f"Window loaded ({renderer.name} renderer)")

    def _on_window_closing(self):
        """Hide to tray instead of closing while the tray is available."""
        if self.tray is not None and not self._stopping:
            self.window.hide()
            return False
        return True

    def _on_window_closed(self):
        logger.info("Window closed")
        self.stop()

    # ==================== Public Methods ====================

    def toggle_visibility(self):
        if self.window:
            visible = self.window.toggle_visibility()
            logger.info("Assistant shown" if visible else "Assistant hidden")

    def toggle_roaming(self):
        enabled = self.context.toggle_roaming()
        self._eval_js(f"AssistantUI.showToast('Roaming {'on' if enabled else 'off'}', 'info')")

    def open_settings(self):
        if self.window:
            self.window.show()
        self._eval_js("AssistantUI.openSettings()")

    def _eval_js(self, script: str):
        """Safely evaluate JavaScript in the window."""
        if self.window and self._ready.is_set():
            try:
                self.window.evaluate_js(script)
            except Exception as e:
                logger.error(f"JS eval error: {e}")


class DesktopAPI:
    """
    Python API exposed to JavaScript via pywebview.

    Methods here can be called from JS: pywebview.api.method_name()
    Each runs on a pywebview worker thread and returns plain JSON data.

    NOTE: We don't store complex objects as attributes to avoid pywebview
    serialization errors with __weakref__.
    """

    def __init__(self, assistant: DesktopAssistant):
        self._assistant_ref = weakref.ref(assistant)

    @property
    def _assistant(self) -> Optional[DesktopAssistant]:
        return self._assistant_ref()

    @property
    def _context(self) -> Optional[AppContext]:
        assistant = self._assistant
        return assistant.context if assistant else None

    def send_message(self, text: str) -> dict:
        """Send a chat message and wait for the reply."""
        context = self._context
        if context is None:
            return {"ok": False, "error": "Assistant is shutting down"}

        try:
            reply = context.submit(context.send_chat(text)).result(timeout=CHAT_TIMEOUT)
        except ChatError as e:
            return {"ok": False, "error": str(e)}
        except Exception as e:
            logger.error(f"❌ Chat error: {e}")
            return {"ok": False, "error": f"Unexpected error: {e}"}

        return {"ok": True, "message": reply.to_dict()}

    def get_welcome(self) -> dict:
        context = self._context
        if context is None:
            return {}
        return context.chat.welcome_message().to_dict()

    def get_setting(self, key: str) -> Any:
        context = self._context
        return context.settings.get(key) if context else None

    def get_all_settings(self) -> dict:
        context = self._context
        return context.settings.all() if context else {}

    def set_setting(self, key: str, value: Any) -> dict:
        context = self._context
        if context is None:
            return {"ok": False, "error": "Assistant is shutting down"}
        try:
            context.update_setting(key, value)
        except ValueError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True}

    def save_settings(self, values: dict) -> dict:
        """Save the settings panel in one go."""
        context = self._context
        if context is None:
            return {"ok": False, "error": "Assistant is shutting down"}
        try:
            context.update_settings(values)
        except ValueError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True}

    def clear_history(self) -> dict:
        context = self._context
        if context:
            context.call(context.chat.clear)
        return {"ok": True}

    def export_chat(self) -> dict:
        """Ask for a file name and write the conversation as JSON."""
        assistant = self._assistant
        if assistant is None or assistant.window is None:
            return {"ok": False, "error": "No window"}

        result = assistant.window.window.create_file_dialog(
            webview.SAVE_DIALOG,
            save_filename="chat-export.json",
        )
        if not result:
            return {"ok": False, "error": "Cancelled"}

        path = result if isinstance(result, str) else result[0]
        llm = assistant.context.chat.llm
        try:
            written = assistant.context.chat.export(
                path,
                provider=assistant.context.settings.get("apiProvider"),
                model=llm.model if llm else "",
            )
        except OSError as e:
            return {"ok": False, "error": f"Could not write {path}: {e}"}
        return {"ok": True, "path": str(written)}

    def pet(self):
        """The user clicked the character."""
        context = self._context
        if context:
            context.call(context.state_machine.trigger_happy, PET_HAPPY_SECONDS)

    def toggle_roaming(self) -> bool:
        assistant = self._assistant
        return assistant.context.toggle_roaming() if assistant else False

    def toggle_visibility(self):
        if self._assistant:
            self._assistant.toggle_visibility()

    def quit(self):
        if self._assistant:
            self._assistant.stop()

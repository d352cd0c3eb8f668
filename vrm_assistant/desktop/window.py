"""
pywebview window adapter.

Gives the roaming controller the four calls it needs (bounds, move,
visibility, work area) on top of a pywebview Window, and keeps track of
visibility and closing since pywebview has no getter for either.
"""

import logging
import threading
from typing import Any, Callable, Optional, Sequence

from vrm_assistant.core.motion import Rect

logger = logging.getLogger(__name__)

try:
    import webview
    WEBVIEW_AVAILABLE = True
except ImportError:
    WEBVIEW_AVAILABLE = False
    logger.warning("pywebview not installed. Install with: pip install pywebview")


def _webview_screens() -> Sequence[Any]:
    if not WEBVIEW_AVAILABLE:
        return []
    return list(getattr(webview, "screens", None) or [])


def _screen_rect(screen: Any) -> Rect:
    return Rect(
        getattr(screen, "x", 0) or 0,
        getattr(screen, "y", 0) or 0,
        screen.width,
        screen.height,
    )


class WebviewWindow:
    """
    WindowHandle over a pywebview Window.

    Attributes:
        window: The pywebview window
    """

    def __init__(self, window: Any, screens: Callable[[], Sequence[Any]] = _webview_screens):
        self.window = window
        self._screens = screens
        self._visible = True
        self._closed = False
        self._lock = threading.Lock()

        window.events.closed += self._on_closed

    def _on_closed(self):
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    # ==================== WindowHandle ====================

    def get_bounds(self) -> Rect:
        return Rect(self.window.x, self.window.y, self.window.width, self.window.height)

    def set_position(self, x: int, y: int):
        self.window.move(x, y)

    def is_visible(self) -> bool:
        return self._visible and not self._closed

    def get_work_area(self) -> Optional[Rect]:
        """
        Area of the screen the window is on.

        pywebview reports full screen geometry, so taskbars are not
        excluded. Returns None when no screen is known.
        """
        screens = self._screens()
        if not screens:
            return None

        rects = [_screen_rect(s) for s in screens]
        try:
            bounds = self.get_bounds()
        except Exception:
            return rects[0]

        center_x = bounds.x + bounds.width / 2
        center_y = bounds.y + bounds.height / 2
        for rect in rects:
            if rect.left <= center_x < rect.right and rect.top <= center_y < rect.bottom:
                return rect
        return rects[0]

    # ==================== Visibility ====================

    def show(self):
        with self._lock:
            if self._closed or self._visible:
                return
            self.window.show()
            self._visible = True

    def hide(self):
        with self._lock:
            if self._closed or not self._visible:
                return
            self.window.hide()
            self._visible = False

    def toggle_visibility(self) -> bool:
        """Returns the new visibility."""
        if self._visible:
            self.hide()
        else:
            self.show()
        return self._visible

    def evaluate_js(self, script: str) -> Any:
        if self._closed:
            return None
        return self.window.evaluate_js(script)

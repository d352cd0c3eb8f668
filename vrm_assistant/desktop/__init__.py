"""
Desktop Module

Hosts the assistant as a desktop overlay:
- Transparent, always-on-top pywebview window
- System tray integration
- Global hotkeys
- Application context tying the core, chat and renderer together
"""

from .app import DesktopAPI, DesktopAssistant, DesktopConfig
from .context import AppContext
from .window import WebviewWindow

__all__ = ["AppContext", "DesktopAPI", "DesktopAssistant", "DesktopConfig", "WebviewWindow"]

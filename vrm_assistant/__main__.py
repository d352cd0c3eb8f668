#!/usr/bin/env python3
"""
VRM Desktop Assistant Launcher

Usage:
    python -m vrm_assistant                  # Start the assistant
    python -m vrm_assistant --roam           # Start roaming right away
    python -m vrm_assistant --speed 4        # Roam at 4 px per tick
    python -m vrm_assistant --debug          # Debug mode
    python -m vrm_assistant --help           # Show help
"""

import argparse
import logging
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Reduce noise from the HTTP client
logging.getLogger('httpx').setLevel(logging.WARNING)


def check_dependencies() -> bool:
    """Check if required dependencies are installed."""
    missing = []

    try:
        import webview
    except ImportError:
        missing.append("pywebview")

    try:
        import httpx
    except ImportError:
        missing.append("httpx")

    try:
        import yaml
    except ImportError:
        missing.append("pyyaml")

    # Optional but recommended
    optional_missing = []
    try:
        import pynput
    except ImportError:
        optional_missing.append("pynput (for hotkeys)")

    try:
        import pystray
        from PIL import Image
    except ImportError:
        optional_missing.append("pystray pillow (for system tray)")

    if missing:
        print("❌ Missing required dependencies:")
        for dep in missing:
            print(f"   - {dep}")
        print(f"\nInstall with: pip install {' '.join(missing)}")
        return False

    if optional_missing:
        print("⚠️ Optional dependencies not installed:")
        for dep in optional_missing:
            print(f"   - {dep}")
        print()

    return True


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="VRM Desktop Assistant - an animated desktop companion"
    )
    parser.add_argument(
        "--settings", "-s",
        type=Path,
        default=None,
        help="Path to settings file (default: ~/.config/vrm-assistant/settings.yaml)"
    )
    parser.add_argument(
        "--roam",
        action="store_true",
        help="Enable roaming on start"
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=None,
        help="Roaming speed in pixels per tick"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug mode"
    )
    parser.add_argument(
        "--no-tray",
        action="store_true",
        help="Disable system tray icon"
    )
    parser.add_argument(
        "--no-hotkeys",
        action="store_true",
        help="Disable global hotkeys"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if not check_dependencies():
        sys.exit(1)

    # Import after dependency check
    from vrm_assistant.desktop import AppContext, DesktopAssistant, DesktopConfig
    from vrm_assistant.settings import SettingsStore

    settings = SettingsStore(args.settings)
    try:
        if args.speed is not None:
            settings.set("roamingSpeed", args.speed)
        if args.roam:
            settings.set("roamingEnabled", True)
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
        sys.exit(2)

    config = DesktopConfig.from_settings(
        settings,
        enable_tray=not args.no_tray,
        enable_hotkeys=not args.no_hotkeys,
        debug=args.debug,
    )

    logger.info("=" * 50)
    logger.info("🐕 VRM Desktop Assistant")
    logger.info("=" * 50)
    logger.info(f"   Window: {config.width}x{config.height} at {config.x},{config.y}")
    logger.info(f"   Settings: {settings.path}")
    logger.info(f"   Roaming: {'on' if settings.get('roamingEnabled') else 'off'} "
                f"({settings.get('roamingSpeed')} px/tick)")
    logger.info(f"   Tray: {'enabled' if config.enable_tray else 'disabled'}")
    logger.info("=" * 50)

    context = AppContext.create(settings)
    assistant = DesktopAssistant(context, config)

    try:
        assistant.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Error: {e}")
        if args.debug:
            raise
    finally:
        assistant.stop()


if __name__ == "__main__":
    main()

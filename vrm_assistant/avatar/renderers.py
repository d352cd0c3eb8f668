"""
Character renderers.

The page can show the character two ways:
- ThreeDRenderer: VRM model (or a placeholder figure) on a three.js/WebGL canvas
- Fallback2DRenderer: a plain image whose CSS classes follow the state

Both take an AnimationState through apply_state(). Which one is used is
decided once, after the page has loaded, by probing what the webview
supports.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from vrm_assistant.core.animation import AnimationState, css_classes, status_label

logger = logging.getLogger(__name__)

EvaluateJS = Callable[[str], Any]

# Evaluated in the page; returns {webgl: bool, three: bool}
CAPABILITY_PROBE_JS = """
(() => {
    let webgl = false;
    try {
        const canvas = document.createElement('canvas');
        webgl = !!(window.WebGLRenderingContext &&
                   (canvas.getContext('webgl') || canvas.getContext('experimental-webgl')));
    } catch (e) {}
    return {webgl: webgl, three: typeof THREE !== 'undefined'};
})()
"""


@dataclass
class RenderCapabilities:
    """What the webview can do for us."""
    webgl: bool = False
    three_js: bool = False
    model_available: bool = False

    @property
    def supports_3d(self) -> bool:
        # Without a model file the page draws a placeholder figure
        return self.webgl and self.three_js


class Renderer(ABC):
    """
    Shows the character in a given animation state.

    Attributes:
        evaluate_js: Callable that runs a script in the page
    """

    name = "renderer"

    def __init__(self, evaluate_js: EvaluateJS):
        self.evaluate_js = evaluate_js
        self.current_state: Optional[AnimationState] = None

    @abstractmethod
    def setup(self, asset_url: Optional[str] = None):
        """Prepare the page (load the model or the image)."""
        pass

    @abstractmethod
    def apply_state(self, state: AnimationState):
        """Show the character in `state`."""
        pass

    def _run(self, script: str):
        try:
            self.evaluate_js(script)
        except Exception as e:
            logger.error(f"JS evaluation error: {e}")


class ThreeDRenderer(Renderer):
    """VRM character on a WebGL canvas."""

    name = "3d"

    def setup(self, asset_url: Optional[str] = None):
        self._run(f"VRMStage.load({json.dumps(asset_url)})")
        logger.info(f"🧊 3D renderer: {asset_url or 'placeholder figure'}")

    def apply_state(self, state: AnimationState):
        state = AnimationState(state)
        self.current_state = state
        self._run(
            f"VRMStage.setAnimationState({json.dumps(state.value)}, {json.dumps(status_label(state))})"
        )


class Fallback2DRenderer(Renderer):
    """Image character animated with CSS classes."""

    name = "2d"

    def setup(self, asset_url: Optional[str] = None):
        self._run(f"FallbackCharacter.show({json.dumps(asset_url)})")
        logger.info("🖼️ Using 2D fallback character")

    def apply_state(self, state: AnimationState):
        state = AnimationState(state)
        self.current_state = state
        self._run(
            f"FallbackCharacter.apply({json.dumps(css_classes(state))}, {json.dumps(status_label(state))})"
        )


def probe_capabilities(evaluate_js: EvaluateJS, model_path: Optional[Path]) -> RenderCapabilities:
    """
    Ask the page what it supports and check the model file.

    Any failure counts as "not supported".
    """
    capabilities = RenderCapabilities(
        model_available=bool(model_path and Path(model_path).is_file()),
    )
    try:
        result = evaluate_js(CAPABILITY_PROBE_JS)
    except Exception as e:
        logger.warning(f"Capability probe failed: {e}")
        return capabilities

    if isinstance(result, dict):
        capabilities.webgl = bool(result.get("webgl"))
        capabilities.three_js = bool(result.get("three"))

    logger.info(
        f"Render capabilities: webgl={capabilities.webgl}, "
        f"three.js={capabilities.three_js}, model={capabilities.model_available}"
    )
    return capabilities


def select_renderer(capabilities: RenderCapabilities, evaluate_js: EvaluateJS) -> Renderer:
    """Pick the renderer for the probed capabilities."""
    if capabilities.supports_3d:
        return ThreeDRenderer(evaluate_js)
    return Fallback2DRenderer(evaluate_js)

"""
Avatar module - shows the character in the overlay page.

Usage:
    from vrm_assistant.avatar import probe_capabilities, select_renderer

    capabilities = probe_capabilities(window.evaluate_js, model_path)
    renderer = select_renderer(capabilities, window.evaluate_js)
    renderer.setup(asset_url)
    renderer.apply_state(AnimationState.TALKING)
"""

from .renderers import (
    Fallback2DRenderer,
    RenderCapabilities,
    Renderer,
    ThreeDRenderer,
    probe_capabilities,
    select_renderer,
)

__all__ = [
    "Fallback2DRenderer",
    "RenderCapabilities",
    "Renderer",
    "ThreeDRenderer",
    "probe_capabilities",
    "select_renderer",
]

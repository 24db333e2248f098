"""Incremental color annotation for text editors."""

from __future__ import annotations

from typing import Any

from highlight_colors.host import DocumentInfo, EditorEvent, EditorEventSource, EditorHost
from highlight_colors.settings_schema import NormalizedHighlightConfig
from highlight_colors.ui.controllers.highlight_controller import ColorHighlightController

__version__ = "0.1.0"


def setup(
    host: EditorHost,
    options: Any = None,
    *,
    event_source: EditorEventSource | None = None,
) -> ColorHighlightController:
    """Build a controller for ``host`` and subscribe it to ``event_source``."""
    controller = ColorHighlightController(host, options)
    if event_source is not None:
        controller.attach_event_source(event_source)
    return controller


__all__ = [
    "ColorHighlightController",
    "DocumentInfo",
    "EditorEvent",
    "EditorEventSource",
    "EditorHost",
    "NormalizedHighlightConfig",
    "setup",
]

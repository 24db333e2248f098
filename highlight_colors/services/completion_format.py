"""Color hint for completion lists whose items document a color value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from highlight_colors.color.models import Color
from highlight_colors.services.decorations import style_name

if TYPE_CHECKING:
    from highlight_colors.color.resolver import ColorResolver
    from highlight_colors.settings_schema import NormalizedHighlightConfig

COLOR_COMPLETION_KIND = "color"


@dataclass(frozen=True, slots=True)
class CompletionColorHint:
    glyph: str
    style_name: str
    color: Color


def format_completion_item(
    documentation: Any,
    resolver: "ColorResolver",
    config: "NormalizedHighlightConfig",
    kind: str | None = None,
) -> CompletionColorHint | None:
    """Return a colored glyph for the item, or ``None`` to leave it as is."""
    if kind is not None and str(kind).strip().lower() != COLOR_COMPLETION_KIND:
        return None
    if not isinstance(documentation, str) or not documentation.strip():
        return None
    color = resolver.resolve_text(documentation)
    if color is None:
        return None
    return CompletionColorHint(
        glyph=config.virtual_symbol,
        style_name=style_name("fg", color),
        color=color,
    )

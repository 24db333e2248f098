"""Decoration styles and reconciliation against a host namespace."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence

from highlight_colors.color.models import Color
from highlight_colors.services.scanner import ColumnUnit, column_for_offset

if TYPE_CHECKING:
    from highlight_colors.color.resolver import ResolvedColor
    from highlight_colors.host import EditorHost
    from highlight_colors.services.scanner import DocumentSnapshot
    from highlight_colors.settings_schema import NormalizedHighlightConfig

LOGGER = logging.getLogger(__name__)

STYLE_PREFIX = "HighlightColors"


@dataclass(frozen=True, slots=True)
class DecorationStyle:
    name: str
    foreground: Color | None = None
    background: Color | None = None


@dataclass(frozen=True, slots=True)
class Decoration:
    row: int
    start_col: int
    end_col: int
    style: DecorationStyle
    virtual_text: str = ""
    virtual_position: str = ""  # "", "inline", "eol" or "eow"
    anchor_col: int = -1

    @property
    def is_virtual(self) -> bool:
        return bool(self.virtual_text)

    @property
    def span(self) -> tuple[int, int, int]:
        return (self.row, self.start_col, self.end_col)


def style_name(kind: str, color: Color) -> str:
    body = color.to_hex_rgba() if color.has_alpha else color.to_hex()
    return f"{STYLE_PREFIX}_{kind}_{body.lstrip('#')}"


def background_style(color: Color, backdrop: Color | None = None) -> DecorationStyle:
    return DecorationStyle(
        name=style_name("bg", color),
        foreground=color.contrast_foreground(backdrop),
        background=color,
    )


def foreground_style(color: Color) -> DecorationStyle:
    return DecorationStyle(name=style_name("fg", color), foreground=color)


def _end_of_word_offset(line: str, offset: int) -> int:
    index = max(0, offset)
    while index < len(line) and not line[index].isspace():
        index += 1
    return index


def build_decoration(
    resolved: "ResolvedColor",
    config: "NormalizedHighlightConfig",
    line_text: str = "",
    column_unit: ColumnUnit = "codepoint",
    backdrop: Color | None = None,
) -> Decoration:
    match = resolved.match
    color = resolved.color
    if config.render == "foreground":
        return Decoration(match.row, match.start_col, match.end_col, foreground_style(color))
    if config.render != "virtual":
        return Decoration(match.row, match.start_col, match.end_col, background_style(color, backdrop))

    position = config.virtual_symbol_position
    end_offset = match.offset + len(match.text)
    if position == "eol":
        anchor = column_for_offset(line_text, len(line_text), column_unit) if line_text else match.end_col
    elif position == "eow" and line_text:
        anchor = column_for_offset(line_text, _end_of_word_offset(line_text, end_offset), column_unit)
    else:
        anchor = match.end_col
    return Decoration(
        row=match.row,
        start_col=match.start_col,
        end_col=match.end_col,
        style=foreground_style(color),
        virtual_text=config.virtual_glyph,
        virtual_position=position,
        anchor_col=anchor,
    )


class DecorationRenderer:
    """Commits decorations for one row window of one document.

    With ``clear_first`` the window is wiped before anything is added. Without
    it the pass is additive: identical decorations already present are kept,
    a different decoration on the same span is replaced, so repeating the same
    pass never grows the namespace.
    """

    def __init__(self, backdrop: Color | None = None):
        self.backdrop = backdrop

    def build(
        self,
        resolved: Iterable["ResolvedColor"],
        config: "NormalizedHighlightConfig",
        snapshot: "DocumentSnapshot | None" = None,
    ) -> list[Decoration]:
        unit: ColumnUnit = snapshot.column_unit if snapshot is not None else "codepoint"
        decorations: list[Decoration] = []
        seen: set[tuple[int, int, int]] = set()
        for item in resolved:
            line_text = snapshot.line(item.match.row) if snapshot is not None else ""
            decoration = build_decoration(item, config, line_text, unit, self.backdrop)
            if decoration.span in seen:
                continue
            seen.add(decoration.span)
            decorations.append(decoration)
        return decorations

    def render(
        self,
        resolved: Sequence["ResolvedColor"],
        config: "NormalizedHighlightConfig",
        host: "EditorHost",
        document_id,
        namespace: int,
        window: tuple[int, int],
        *,
        clear_first: bool = False,
        snapshot: "DocumentSnapshot | None" = None,
    ) -> list[Decoration]:
        start_row, end_row = window
        desired = [
            d for d in self.build(resolved, config, snapshot)
            if start_row <= d.row <= end_row
        ]

        existing: dict[tuple[int, int, int], list[tuple[int, Decoration]]] = {}
        if clear_first:
            try:
                host.clear_namespace(document_id, namespace, start_row, end_row + 1)
            except Exception:
                LOGGER.debug("Failed to clear rows %s-%s of %r", start_row, end_row, document_id, exc_info=True)
        else:
            try:
                current = host.decorations(document_id, namespace, start_row, end_row)
            except Exception:
                LOGGER.debug("Failed to read decorations of %r", document_id, exc_info=True)
                current = []
            for handle, decoration in current:
                existing.setdefault(decoration.span, []).append((handle, decoration))

        committed: list[Decoration] = []
        for decoration in desired:
            kept = False
            for handle, present in existing.pop(decoration.span, []):
                if present == decoration and not kept:
                    kept = True
                    continue
                self._remove(host, document_id, namespace, handle)
            if kept:
                committed.append(decoration)
                continue
            try:
                host.add_decoration(document_id, namespace, decoration)
            except Exception:
                LOGGER.debug("Failed to add decoration %r to %r", decoration, document_id, exc_info=True)
                continue
            committed.append(decoration)
        return committed

    @staticmethod
    def _remove(host: "EditorHost", document_id, namespace: int, handle: int) -> None:
        try:
            host.remove_decoration(document_id, namespace, handle)
        except Exception:
            LOGGER.debug("Stale decoration handle %r in %r", handle, document_id, exc_info=True)

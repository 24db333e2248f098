"""Turn matched color tokens into concrete colors.

Resolution never raises: anything that cannot be interpreted yields ``None``
and the token is simply left undecorated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from highlight_colors.color.models import Color, hex_to_color, hsl_to_color
from highlight_colors.color.named_colors import named_color_hex
from highlight_colors.color.patterns import (
    HEX_0X_RE,
    HEX_RE,
    HSL_RE,
    NAMED_COLOR_RE,
    RGB_RE,
    TAILWIND_RE,
    VAR_USAGE_RE,
    Notation,
    custom_color_regex,
)
from highlight_colors.color.tailwind_colors import tailwind_color_hex

if TYPE_CHECKING:
    from highlight_colors.services.scanner import ColorMatch, DocumentSnapshot
    from highlight_colors.settings_schema import CustomColor, NormalizedHighlightConfig

LOGGER = logging.getLogger(__name__)

MAX_VARIABLE_DEPTH = 8
_IMPORTANT_RE = re.compile(r"\s*!important\s*$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ResolvedColor:
    match: "ColorMatch"
    color: Color


def _parse_number(text: str) -> tuple[float, bool]:
    value = str(text).strip()
    if value.endswith("%"):
        return float(value[:-1]), True
    return float(value), False


def _parse_alpha(text: str | None) -> float:
    if text is None:
        return 255.0
    value, is_percent = _parse_number(text)
    factor = value / 100.0 if is_percent else value
    return max(0.0, min(1.0, factor)) * 255.0


def _parse_rgb_channel(text: str) -> float:
    value, is_percent = _parse_number(text)
    if is_percent:
        value = value * 255.0 / 100.0
    return max(0.0, min(255.0, value))


def parse_rgb(text: str) -> Color | None:
    m = RGB_RE.fullmatch(str(text or "").strip())
    if m is None:
        return None
    try:
        return Color.from_channels(
            _parse_rgb_channel(m.group("r")),
            _parse_rgb_channel(m.group("g")),
            _parse_rgb_channel(m.group("b")),
            _parse_alpha(m.group("a")),
        )
    except ValueError:
        return None


def parse_hsl(text: str) -> Color | None:
    m = HSL_RE.fullmatch(str(text or "").strip())
    if m is None:
        return None
    try:
        return hsl_to_color(
            float(m.group("h")),
            float(m.group("s")),
            float(m.group("l")),
            _parse_alpha(m.group("a")),
        )
    except ValueError:
        return None


def parse_hex(text: str) -> Color | None:
    value = str(text or "").strip()
    if HEX_RE.fullmatch(value) is None and HEX_0X_RE.fullmatch(value) is None:
        # Bare bodies ("ff0000") are accepted too; the scanner never emits them.
        if value.startswith(("#", "0x", "0X")):
            return None
    return hex_to_color(value)


def _definition_regex(name: str) -> re.Pattern:
    return re.compile(rf"(?<![\w-]){re.escape(name)}\s*:\s*(?P<value>[^;{{}}\n]+)")


class ColorResolver:
    """Resolves matches produced by the scanner under one configuration."""

    def __init__(self, config: "NormalizedHighlightConfig"):
        self._config = config
        self._custom: list[tuple["CustomColor", re.Pattern, Color]] = []
        for custom in config.custom_colors:
            color = self._resolve_literal(custom.color)
            if color is None:
                LOGGER.warning("Dropping custom color %r: cannot resolve %r", custom.label, custom.color)
                continue
            self._custom.append((custom, custom_color_regex(custom), color))

    @property
    def config(self) -> "NormalizedHighlightConfig":
        return self._config

    # ---------- Public API ----------

    def resolve(self, match: "ColorMatch", document: "DocumentSnapshot | None" = None) -> ResolvedColor | None:
        color = self.resolve_token(match.notation, match.text, document, match.row, match.offset)
        if color is None:
            return None
        return ResolvedColor(match=match, color=color)

    def resolve_all(self, matches, document: "DocumentSnapshot | None" = None) -> list[ResolvedColor]:
        resolved: list[ResolvedColor] = []
        for match in matches:
            item = self.resolve(match, document)
            if item is not None:
                resolved.append(item)
        return resolved

    def resolve_token(
        self,
        notation: Notation,
        text: str,
        document: "DocumentSnapshot | None" = None,
        row: int = 0,
        offset: int = 0,
        depth: int = 0,
    ) -> Color | None:
        try:
            if notation == Notation.HEX:
                return parse_hex(text)
            if notation == Notation.RGB:
                return parse_rgb(text)
            if notation == Notation.HSL:
                return parse_hsl(text)
            if notation == Notation.NAMED:
                value = named_color_hex(text)
                return hex_to_color(value) if value else None
            if notation == Notation.TAILWIND:
                if not self._config.enable_tailwind:
                    return None
                value = tailwind_color_hex(text)
                return hex_to_color(value) if value else None
            if notation == Notation.CUSTOM:
                return self._resolve_custom(text)
            if notation == Notation.VAR_USAGE:
                return self._resolve_var_usage(text, document, row, offset, depth)
        except (ValueError, OverflowError, re.error):
            LOGGER.debug("Failed to resolve %s token %r", notation, text, exc_info=True)
        return None

    def resolve_text(
        self,
        text: str,
        document: "DocumentSnapshot | None" = None,
        row: int = 0,
        offset: int = 0,
        depth: int = 0,
    ) -> Color | None:
        """Resolve a stand-alone color expression such as a variable value."""
        value = _IMPORTANT_RE.sub("", str(text or "")).strip()
        if not value:
            return None
        var_match = VAR_USAGE_RE.fullmatch(value)
        if var_match is not None:
            return self._resolve_var_usage(value, document, row, offset, depth)
        literal = self._resolve_literal(value)
        if literal is not None:
            return literal
        return self._resolve_custom(value)

    # ---------- Notations ----------

    def _resolve_literal(self, value: str) -> Color | None:
        value = str(value or "").strip()
        if HEX_RE.fullmatch(value) or HEX_0X_RE.fullmatch(value):
            return hex_to_color(value)
        if RGB_RE.fullmatch(value):
            return parse_rgb(value)
        if HSL_RE.fullmatch(value):
            return parse_hsl(value)
        if NAMED_COLOR_RE.fullmatch(value):
            named = named_color_hex(value)
            return hex_to_color(named) if named else None
        if self._config.enable_tailwind and TAILWIND_RE.fullmatch(value):
            tailwind = tailwind_color_hex(value)
            return hex_to_color(tailwind) if tailwind else None
        return None

    def _resolve_custom(self, text: str) -> Color | None:
        # Literal labels take priority over pattern labels.
        for custom, _regex, color in self._custom:
            if not custom.is_pattern and custom.label == text:
                return color
        for custom, regex, color in self._custom:
            if custom.is_pattern and regex.fullmatch(text):
                return color
        return None

    def _resolve_var_usage(
        self,
        text: str,
        document: "DocumentSnapshot | None",
        row: int,
        offset: int,
        depth: int,
    ) -> Color | None:
        m = VAR_USAGE_RE.fullmatch(str(text or "").strip())
        if m is None:
            return None
        fallback = m.group("fallback")
        color = None
        if document is not None and depth < MAX_VARIABLE_DEPTH:
            definition = self.find_variable_definition(m.group("name"), document, row, offset)
            if definition is not None:
                def_row, def_offset, value = definition
                color = self.resolve_text(value, document, def_row, def_offset, depth + 1)
        if color is None and fallback and depth < MAX_VARIABLE_DEPTH:
            color = self.resolve_text(fallback, document, row, offset, depth + 1)
        return color

    def find_variable_definition(
        self,
        name: str,
        document: "DocumentSnapshot",
        row: int,
        offset: int,
    ) -> tuple[int, int, str] | None:
        """Nearest definition of ``name`` before ``(row, offset)``.

        Returns ``(row, offset, value)`` where offset is the code point index
        of the definition inside its line.
        """
        regex = _definition_regex(name)
        for current in range(min(row, document.line_count - 1), -1, -1):
            line = document.line(current)
            if current == row:
                line = line[: max(0, offset)]
            if name not in line:
                continue
            found = None
            for m in regex.finditer(line):
                found = m
            if found is not None:
                return current, found.start(), found.group("value")
        return None

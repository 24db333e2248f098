"""Color notations and the ordered pattern set the scanner searches for."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from highlight_colors.color.named_colors import CSS_NAMED_COLORS
from highlight_colors.color.tailwind_colors import (
    TAILWIND_PALETTE,
    TAILWIND_SHADES,
    TAILWIND_SINGLE_COLORS,
    TAILWIND_UTILITY_PREFIXES,
)

if TYPE_CHECKING:
    from highlight_colors.settings_schema import CustomColor, NormalizedHighlightConfig


class Notation(str, Enum):
    HEX = "hex"
    RGB = "rgb"
    HSL = "hsl"
    VAR_USAGE = "var_usage"
    NAMED = "named"
    TAILWIND = "tailwind"
    CUSTOM = "custom"
    # Reported by the host's color provider, never searched for.
    DOCUMENT_COLOR = "document_color"


# Earlier entries win when matches overlap.
NOTATION_PRECEDENCE: tuple[Notation, ...] = (
    Notation.HEX,
    Notation.RGB,
    Notation.HSL,
    Notation.VAR_USAGE,
    Notation.NAMED,
    Notation.TAILWIND,
    Notation.CUSTOM,
)

_NUM = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)"
_SEP = r"\s*(?:,\s*|\s+)"

HEX_RE = re.compile(r"(?<![&\w])#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6}|[0-9a-fA-F]{4}|[0-9a-fA-F]{3})(?![0-9A-Za-z_])")
HEX_LONG_RE = re.compile(r"(?<![&\w])#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6})(?![0-9A-Za-z_])")
HEX_0X_RE = re.compile(r"(?<!\w)0[xX][0-9a-fA-F]{6}(?![0-9A-Za-z_])")

RGB_RE = re.compile(
    rf"(?<![\w-])rgba?\(\s*(?P<r>{_NUM}%?){_SEP}(?P<g>{_NUM}%?){_SEP}(?P<b>{_NUM}%?)"
    rf"\s*(?:[,/]\s*(?P<a>{_NUM}%?)\s*)?\)",
    re.IGNORECASE,
)
HSL_RE = re.compile(
    rf"(?<![\w-])hsla?\(\s*(?P<h>{_NUM})(?:deg)?{_SEP}(?P<s>{_NUM})%?{_SEP}(?P<l>{_NUM})%?"
    rf"\s*(?:[,/]\s*(?P<a>{_NUM}%?)\s*)?\)",
    re.IGNORECASE,
)
VAR_USAGE_RE = re.compile(
    r"var\(\s*(?P<name>--[A-Za-z0-9_-]+)\s*(?:,\s*(?P<fallback>[^()]*(?:\([^()]*\)[^()]*)?))?\)"
)


def _alternation(words) -> str:
    # Longest first so "darkred" is not cut short by "red".
    ordered = sorted(set(words), key=lambda w: (-len(w), w))
    return "|".join(re.escape(w) for w in ordered)


NAMED_COLOR_RE = re.compile(
    rf"(?<![\w#-])(?:{_alternation(CSS_NAMED_COLORS)})(?![\w-])",
    re.IGNORECASE,
)

_TAILWIND_COLOR_NAMES = [
    f"{hue}-{shade}" for hue in TAILWIND_PALETTE for shade in TAILWIND_SHADES
] + list(TAILWIND_SINGLE_COLORS)
TAILWIND_RE = re.compile(
    rf"(?<![\w-])(?:{_alternation(TAILWIND_UTILITY_PREFIXES)})-(?:{_alternation(_TAILWIND_COLOR_NAMES)})(?![\w-])"
)


@dataclass(frozen=True, slots=True)
class Pattern:
    notation: Notation
    regex: re.Pattern
    label: str = ""


def custom_color_regex(custom: "CustomColor") -> re.Pattern:
    if custom.is_pattern:
        return re.compile(custom.label)
    return re.compile(re.escape(custom.label))


def build_patterns(
    config: "NormalizedHighlightConfig",
    *,
    has_external_color_provider: bool = False,
) -> list[Pattern]:
    """Return the active patterns in precedence order.

    Tailwind classes are skipped while an external color provider (a language
    server that already paints them) is attached, to avoid double decorations.
    """
    patterns: list[Pattern] = []
    if config.enable_hex:
        patterns.append(Pattern(Notation.HEX, HEX_RE if config.enable_short_hex else HEX_LONG_RE))
        patterns.append(Pattern(Notation.HEX, HEX_0X_RE))
    if config.enable_rgb:
        patterns.append(Pattern(Notation.RGB, RGB_RE))
    if config.enable_hsl:
        patterns.append(Pattern(Notation.HSL, HSL_RE))
    if config.enable_var_usage:
        patterns.append(Pattern(Notation.VAR_USAGE, VAR_USAGE_RE))
    if config.enable_named_colors:
        patterns.append(Pattern(Notation.NAMED, NAMED_COLOR_RE))
    if config.enable_tailwind and not has_external_color_provider:
        patterns.append(Pattern(Notation.TAILWIND, TAILWIND_RE))
    for custom in config.custom_colors:
        patterns.append(Pattern(Notation.CUSTOM, custom_color_regex(custom), label=custom.label))
    return patterns

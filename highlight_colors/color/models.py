"""Canonical color value and the numeric conversions the resolver relies on."""

from __future__ import annotations

import re
from dataclasses import dataclass

_HEX_BODY_RE = re.compile(r"^(?:#|0[xX])?(?P<body>[0-9a-fA-F]+)$")
_HEX_BODY_LENGTHS = (3, 4, 6, 8)

# YIQ weights, same ones the editor uses to pick swatch outlines.
_BRIGHTNESS_WEIGHTS = (0.299, 0.587, 0.114)
CONTRAST_THRESHOLD = 128.0
DARK_TEXT = "#000000"
LIGHT_TEXT = "#ffffff"


def _clamp_channel(value: float) -> int:
    return max(0, min(255, int(round(value))))


@dataclass(frozen=True, slots=True)
class Color:
    red: int
    green: int
    blue: int
    alpha: int = 255

    @classmethod
    def from_channels(cls, red: float, green: float, blue: float, alpha: float = 255) -> "Color":
        return cls(
            red=_clamp_channel(red),
            green=_clamp_channel(green),
            blue=_clamp_channel(blue),
            alpha=_clamp_channel(alpha),
        )

    @property
    def has_alpha(self) -> bool:
        return self.alpha < 255

    @property
    def alpha_factor(self) -> float:
        return self.alpha / 255.0

    def to_hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    def to_hex_rgba(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}{self.alpha:02x}"

    def perceived_brightness(self) -> float:
        wr, wg, wb = _BRIGHTNESS_WEIGHTS
        return wr * self.red + wg * self.green + wb * self.blue

    def composited_over(self, backdrop: "Color") -> "Color":
        """Opaque color seen when this one is painted over ``backdrop``."""
        a = self.alpha_factor
        return Color.from_channels(
            self.red * a + backdrop.red * (1.0 - a),
            self.green * a + backdrop.green * (1.0 - a),
            self.blue * a + backdrop.blue * (1.0 - a),
        )

    def contrast_foreground(self, backdrop: "Color | None" = None) -> "Color":
        """Black text on bright colors, white text on dark ones.

        Translucent colors are judged by what shows through over ``backdrop``
        (the editor background, white when unknown).
        """
        seen = self
        if self.has_alpha:
            seen = self.composited_over(backdrop if backdrop is not None else DEFAULT_BACKDROP)
        if seen.perceived_brightness() >= CONTRAST_THRESHOLD:
            return hex_to_color(DARK_TEXT)
        return hex_to_color(LIGHT_TEXT)


DEFAULT_BACKDROP = Color(255, 255, 255)


def hex_to_color(text: str) -> Color | None:
    """Parse a hex literal with an optional ``#`` or ``0x`` marker.

    3/4 digit bodies are shorthand (each digit duplicated); 4/8 digit bodies
    carry an alpha channel in the last position.
    """
    m = _HEX_BODY_RE.match(str(text or "").strip())
    if m is None:
        return None
    body = m.group("body")
    if len(body) not in _HEX_BODY_LENGTHS:
        return None
    if len(body) in (3, 4):
        body = "".join(ch * 2 for ch in body)
    red = int(body[0:2], 16)
    green = int(body[2:4], 16)
    blue = int(body[4:6], 16)
    alpha = int(body[6:8], 16) if len(body) == 8 else 255
    return Color(red, green, blue, alpha)


def hsl_to_color(hue: float, saturation: float, lightness: float, alpha: float = 255) -> Color:
    """Convert HSL (degrees, percent, percent) to RGB with the hue-chroma formula."""
    h = float(hue) % 360.0
    s = max(0.0, min(100.0, float(saturation))) / 100.0
    light = max(0.0, min(100.0, float(lightness))) / 100.0

    chroma = (1.0 - abs(2.0 * light - 1.0)) * s
    h_prime = h / 60.0
    x = chroma * (1.0 - abs((h_prime % 2.0) - 1.0))
    if h_prime < 1:
        r1, g1, b1 = chroma, x, 0.0
    elif h_prime < 2:
        r1, g1, b1 = x, chroma, 0.0
    elif h_prime < 3:
        r1, g1, b1 = 0.0, chroma, x
    elif h_prime < 4:
        r1, g1, b1 = 0.0, x, chroma
    elif h_prime < 5:
        r1, g1, b1 = x, 0.0, chroma
    else:
        r1, g1, b1 = chroma, 0.0, x
    m = light - chroma / 2.0
    return Color.from_channels((r1 + m) * 255.0, (g1 + m) * 255.0, (b1 + m) * 255.0, alpha)

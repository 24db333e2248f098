from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, TypedDict

LOGGER = logging.getLogger(__name__)

RENDER_MODES = (
    "background",
    "foreground",
    "virtual",
)

VIRTUAL_SYMBOL_POSITIONS = (
    "inline",
    "eol",
    "eow",
)

_NOTATION_FLAGS = (
    "enable_hex",
    "enable_short_hex",
    "enable_rgb",
    "enable_hsl",
    "enable_var_usage",
    "enable_named_colors",
    "enable_tailwind",
)


class CustomColorEntry(TypedDict, total=False):
    label: str
    color: str
    is_pattern: bool


class HighlightColorsSettings(TypedDict, total=False):
    enabled: bool
    render: str
    enable_hex: bool
    enable_short_hex: bool
    enable_rgb: bool
    enable_hsl: bool
    enable_var_usage: bool
    enable_named_colors: bool
    enable_tailwind: bool
    custom_colors: list[CustomColorEntry]
    virtual_symbol: str
    virtual_symbol_prefix: str
    virtual_symbol_suffix: str
    virtual_symbol_position: str
    exclude_filetypes: list[str]
    exclude_buftypes: list[str]
    debounce_ms: int


def default_highlight_settings() -> HighlightColorsSettings:
    return {
        "enabled": True,
        "render": "background",
        "enable_hex": True,
        "enable_short_hex": True,
        "enable_rgb": True,
        "enable_hsl": True,
        "enable_var_usage": True,
        "enable_named_colors": True,
        "enable_tailwind": False,
        "custom_colors": [],
        "virtual_symbol": "■",
        "virtual_symbol_prefix": "",
        "virtual_symbol_suffix": " ",
        "virtual_symbol_position": "inline",
        "exclude_filetypes": [],
        "exclude_buftypes": [],
        "debounce_ms": 50,
    }


def _warn_fallback(key: str, value: Any, fallback: Any) -> None:
    LOGGER.warning("Invalid highlight-colors option %s=%r, using default %r", key, value, fallback)


def _bool_option(data: dict, key: str, defaults: HighlightColorsSettings) -> bool:
    value = data.get(key, defaults[key])
    if isinstance(value, bool):
        return value
    _warn_fallback(key, value, defaults[key])
    return bool(defaults[key])


def _choice_option(data: dict, key: str, choices: tuple[str, ...], defaults: HighlightColorsSettings) -> str:
    value = data.get(key, defaults[key])
    text = str(value or "").strip().lower() if isinstance(value, str) else ""
    if text in choices:
        return text
    _warn_fallback(key, value, defaults[key])
    return str(defaults[key])


def _text_option(data: dict, key: str, defaults: HighlightColorsSettings) -> str:
    value = data.get(key, defaults[key])
    if isinstance(value, str):
        return value
    _warn_fallback(key, value, defaults[key])
    return str(defaults[key])


def _string_list_option(data: dict, key: str, defaults: HighlightColorsSettings) -> list[str]:
    value = data.get(key, defaults[key])
    if isinstance(value, (list, tuple, set, frozenset)) and all(isinstance(item, str) for item in value):
        return [str(item) for item in value if str(item).strip()]
    _warn_fallback(key, value, defaults[key])
    return list(defaults[key])


def _custom_colors_option(data: dict) -> list[CustomColorEntry]:
    # Color values are validated by the resolver once the config is built.
    raw = data.get("custom_colors")
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        _warn_fallback("custom_colors", raw, [])
        return []

    entries: list[CustomColorEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            LOGGER.warning("Dropping custom color entry %r: expected a mapping", item)
            continue
        label = item.get("label")
        color = item.get("color")
        if not isinstance(label, str) or not label.strip():
            LOGGER.warning("Dropping custom color entry %r: missing label", item)
            continue
        if not isinstance(color, str) or not color.strip():
            LOGGER.warning("Dropping custom color %r: missing color value", label)
            continue
        is_pattern = bool(item.get("is_pattern", False))
        if is_pattern:
            try:
                re.compile(label)
            except re.error as exc:
                LOGGER.warning("Dropping custom color %r: invalid pattern (%s)", label, exc)
                continue
        entries.append({"label": label, "color": color.strip(), "is_pattern": is_pattern})
    return entries


def normalize_highlight_settings(raw: Any) -> HighlightColorsSettings:
    defaults = default_highlight_settings()
    data: dict[str, Any] = dict(defaults)
    if isinstance(raw, dict):
        for key, value in raw.items():
            if key not in defaults:
                LOGGER.warning("Ignoring unknown highlight-colors option %r", key)
                continue
            # ``None`` means "not set" so the default stays in place.
            if value is not None:
                data[str(key)] = value
    elif raw is not None:
        LOGGER.warning("highlight-colors options must be a mapping, got %s", type(raw).__name__)

    debounce_value = data.get("debounce_ms")
    try:
        if isinstance(debounce_value, bool):
            raise TypeError(debounce_value)
        debounce_ms = max(0, min(2000, int(debounce_value)))
    except (TypeError, ValueError):
        _warn_fallback("debounce_ms", debounce_value, defaults["debounce_ms"])
        debounce_ms = int(defaults["debounce_ms"])

    symbol = _text_option(data, "virtual_symbol", defaults)
    if not symbol:
        _warn_fallback("virtual_symbol", symbol, defaults["virtual_symbol"])
        symbol = defaults["virtual_symbol"]

    normalized: HighlightColorsSettings = {
        "enabled": _bool_option(data, "enabled", defaults),
        "render": _choice_option(data, "render", RENDER_MODES, defaults),
        "custom_colors": _custom_colors_option(data),
        "virtual_symbol": symbol,
        "virtual_symbol_prefix": _text_option(data, "virtual_symbol_prefix", defaults),
        "virtual_symbol_suffix": _text_option(data, "virtual_symbol_suffix", defaults),
        "virtual_symbol_position": _choice_option(
            data, "virtual_symbol_position", VIRTUAL_SYMBOL_POSITIONS, defaults
        ),
        "exclude_filetypes": _string_list_option(data, "exclude_filetypes", defaults),
        "exclude_buftypes": _string_list_option(data, "exclude_buftypes", defaults),
        "debounce_ms": debounce_ms,
    }
    for flag in _NOTATION_FLAGS:
        normalized[flag] = _bool_option(data, flag, defaults)
    return normalized


@dataclass(frozen=True, slots=True)
class CustomColor:
    label: str
    color: str
    is_pattern: bool = False


@dataclass(frozen=True, slots=True)
class NormalizedHighlightConfig:
    enabled: bool
    render: str
    enable_hex: bool
    enable_short_hex: bool
    enable_rgb: bool
    enable_hsl: bool
    enable_var_usage: bool
    enable_named_colors: bool
    enable_tailwind: bool
    custom_colors: tuple[CustomColor, ...]
    virtual_symbol: str
    virtual_symbol_prefix: str
    virtual_symbol_suffix: str
    virtual_symbol_position: str
    exclude_filetypes: frozenset[str]
    exclude_buftypes: frozenset[str]
    debounce_ms: int

    @classmethod
    def from_mapping(cls, data: Any) -> "NormalizedHighlightConfig":
        n = normalize_highlight_settings(data)
        return cls(
            enabled=bool(n["enabled"]),
            render=str(n["render"]),
            enable_hex=bool(n["enable_hex"]),
            enable_short_hex=bool(n["enable_short_hex"]),
            enable_rgb=bool(n["enable_rgb"]),
            enable_hsl=bool(n["enable_hsl"]),
            enable_var_usage=bool(n["enable_var_usage"]),
            enable_named_colors=bool(n["enable_named_colors"]),
            enable_tailwind=bool(n["enable_tailwind"]),
            custom_colors=tuple(
                CustomColor(
                    label=str(entry["label"]),
                    color=str(entry["color"]),
                    is_pattern=bool(entry.get("is_pattern", False)),
                )
                for entry in n["custom_colors"]
            ),
            virtual_symbol=str(n["virtual_symbol"]),
            virtual_symbol_prefix=str(n["virtual_symbol_prefix"]),
            virtual_symbol_suffix=str(n["virtual_symbol_suffix"]),
            virtual_symbol_position=str(n["virtual_symbol_position"]),
            exclude_filetypes=frozenset(n["exclude_filetypes"]),
            exclude_buftypes=frozenset(n["exclude_buftypes"]),
            debounce_ms=int(n["debounce_ms"]),
        )

    @property
    def virtual_glyph(self) -> str:
        return f"{self.virtual_symbol_prefix}{self.virtual_symbol}{self.virtual_symbol_suffix}"

    def is_excluded(self, filetype: str, buftype: str) -> bool:
        return filetype in self.exclude_filetypes or buftype in self.exclude_buftypes

from __future__ import annotations

from highlight_colors.color.patterns import (
    HEX_RE,
    NAMED_COLOR_RE,
    NOTATION_PRECEDENCE,
    TAILWIND_RE,
    Notation,
    build_patterns,
)
from highlight_colors.settings_schema import NormalizedHighlightConfig


def _notations(patterns):
    return [p.notation for p in patterns]


def test_default_pattern_order(default_config):
    assert _notations(build_patterns(default_config)) == [
        Notation.HEX,
        Notation.HEX,
        Notation.RGB,
        Notation.HSL,
        Notation.VAR_USAGE,
        Notation.NAMED,
    ]


def test_patterns_follow_precedence_order():
    cfg = NormalizedHighlightConfig.from_mapping(
        {
            "enable_tailwind": True,
            "custom_colors": [{"label": "brand", "color": "#123456"}],
        }
    )
    notations = _notations(build_patterns(cfg))
    ranks = [NOTATION_PRECEDENCE.index(n) for n in notations]
    assert ranks == sorted(ranks)
    assert notations[-1] == Notation.CUSTOM


def test_disabled_notations_are_skipped():
    cfg = NormalizedHighlightConfig.from_mapping(
        {"enable_hex": False, "enable_rgb": False, "enable_named_colors": False}
    )
    assert _notations(build_patterns(cfg)) == [Notation.HSL, Notation.VAR_USAGE]


def test_tailwind_suppressed_by_external_provider():
    cfg = NormalizedHighlightConfig.from_mapping({"enable_tailwind": True})
    assert Notation.TAILWIND in _notations(build_patterns(cfg))
    assert Notation.TAILWIND not in _notations(build_patterns(cfg, has_external_color_provider=True))


def test_short_hex_toggle():
    cfg = NormalizedHighlightConfig.from_mapping({"enable_short_hex": False})
    hex_regex = build_patterns(cfg)[0].regex
    assert hex_regex.search("color: #abc;") is None
    assert hex_regex.search("color: #aabbcc;") is not None


def test_build_patterns_is_repeatable(default_config):
    assert build_patterns(default_config) == build_patterns(default_config)


def test_hex_boundaries():
    assert HEX_RE.search("&#123;") is None
    assert HEX_RE.search("issue#fff") is None
    assert HEX_RE.search("#fffff") is None
    assert HEX_RE.search("(#fff)").group(0) == "#fff"


def test_named_color_boundaries():
    assert NAMED_COLOR_RE.search("reduce") is None
    assert NAMED_COLOR_RE.search("--red") is None
    assert NAMED_COLOR_RE.search("bg-red-500") is None
    assert NAMED_COLOR_RE.search("color: Red;").group(0) == "Red"
    assert NAMED_COLOR_RE.search("darkred").group(0) == "darkred"


def test_tailwind_class_regex():
    assert TAILWIND_RE.search('class="p-4 bg-sky-400"').group(0) == "bg-sky-400"
    assert TAILWIND_RE.search("hover:text-white").group(0) == "text-white"
    assert TAILWIND_RE.search("bg-sky-4000") is None

from __future__ import annotations

import logging

import pytest

from highlight_colors.color.models import Color
from highlight_colors.color.patterns import Notation, build_patterns
from highlight_colors.color.resolver import (
    MAX_VARIABLE_DEPTH,
    ColorResolver,
    parse_hex,
    parse_hsl,
    parse_rgb,
)
from highlight_colors.services.scanner import DocumentSnapshot, scan
from highlight_colors.settings_schema import NormalizedHighlightConfig

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)


def _resolver(**options) -> ColorResolver:
    return ColorResolver(NormalizedHighlightConfig.from_mapping(options))


def _resolve_document(resolver: ColorResolver, text: str):
    snapshot = DocumentSnapshot.from_text(text)
    patterns = build_patterns(resolver.config)
    matches = scan(patterns, 0, snapshot.line_count - 1, snapshot)
    return resolver.resolve_all(matches, snapshot)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("#f00", RED),
        ("#ff0000", RED),
        ("#ff000080", Color(255, 0, 0, 128)),
        ("0xff0000", RED),
        ("#f00f", RED),
    ],
)
def test_hex_tokens(text, expected):
    assert parse_hex(text) == expected


def test_malformed_hex_tokens():
    assert parse_hex("#ff00") == Color(255, 255, 0, 0)
    assert parse_hex("#ff00f") is None
    assert parse_hex("0xfff") is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("rgb(255, 0, 0)", RED),
        ("RGB(255,0,0)", RED),
        ("rgba(255, 0, 0, 0.5)", Color(255, 0, 0, 128)),
        ("rgb(300, -5, 0)", RED),
        ("rgb(100%, 0%, 0%)", RED),
        ("rgb(255 0 0 / 50%)", Color(255, 0, 0, 128)),
        ("rgba(0, 0, 255, 2)", BLUE),
    ],
)
def test_rgb_tokens(text, expected):
    assert parse_rgb(text) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("hsl(0, 100%, 50%)", RED),
        ("hsl(120, 100%, 50%)", Color(0, 255, 0)),
        ("hsl(240deg 100% 50%)", BLUE),
        ("hsla(0, 100%, 50%, 0.5)", Color(255, 0, 0, 128)),
    ],
)
def test_hsl_tokens(text, expected):
    assert parse_hsl(text) == expected


def test_named_and_tailwind_tokens():
    resolver = _resolver()
    assert resolver.resolve_token(Notation.NAMED, "RebeccaPurple") == Color(0x66, 0x33, 0x99)
    assert resolver.resolve_token(Notation.NAMED, "notacolor") is None
    assert resolver.resolve_token(Notation.TAILWIND, "bg-red-500") is None

    tailwind = _resolver(enable_tailwind=True)
    assert tailwind.resolve_token(Notation.TAILWIND, "bg-red-500") == Color(0xEF, 0x44, 0x44)


def test_unknown_tokens_never_raise():
    resolver = _resolver()
    assert resolver.resolve_token(Notation.RGB, "rgb(a, b, c)") is None
    assert resolver.resolve_token(Notation.HSL, "") is None
    assert resolver.resolve_token(Notation.VAR_USAGE, "var(--x)") is None
    assert resolver.resolve_text("   ") is None


def test_resolve_text_strips_important():
    assert _resolver().resolve_text("#fff !important") == Color(255, 255, 255)


def test_custom_colors_literal_and_pattern():
    resolver = _resolver(
        custom_colors=[
            {"label": r"brand-\w+", "color": "#00ff00", "is_pattern": True},
            {"label": "brand-primary", "color": "rgb(255, 0, 0)"},
        ]
    )
    assert resolver.resolve_token(Notation.CUSTOM, "brand-primary") == RED
    assert resolver.resolve_token(Notation.CUSTOM, "brand-secondary") == Color(0, 255, 0)
    assert resolver.resolve_token(Notation.CUSTOM, "other") is None


def test_unresolvable_custom_color_is_dropped(caplog):
    with caplog.at_level(logging.WARNING):
        resolver = _resolver(custom_colors=[{"label": "oops", "color": "not-a-color"}])
    assert resolver.resolve_token(Notation.CUSTOM, "oops") is None
    assert "oops" in caplog.text


def test_var_usage_resolves_preceding_definition():
    resolved = _resolve_document(_resolver(), ":root {\n  --x: #ff0000;\n}\np { color: var(--x) }")
    var_items = [r for r in resolved if r.match.notation == Notation.VAR_USAGE]
    assert len(var_items) == 1
    assert var_items[0].match.row == 3
    assert var_items[0].color == RED


def test_undefined_variable_produces_no_color():
    resolved = _resolve_document(_resolver(), "p { color: var(--missing) }")
    assert resolved == []


def test_definition_after_reference_is_ignored():
    resolved = _resolve_document(_resolver(), "p { color: var(--x) }\n--x: #ff0000;")
    assert [r.match.notation for r in resolved] == [Notation.HEX]


def test_nearest_preceding_definition_wins():
    text = "--x: #0000ff;\n--x: #ff0000;\np { color: var(--x) }\n--x: #00ff00;"
    resolved = _resolve_document(_resolver(), text)
    (var_item,) = [r for r in resolved if r.match.notation == Notation.VAR_USAGE]
    assert var_item.color == RED


def test_same_line_definition_left_of_reference():
    resolved = _resolve_document(_resolver(), "--x: blue; color: var(--x);")
    (var_item,) = [r for r in resolved if r.match.notation == Notation.VAR_USAGE]
    assert var_item.color == BLUE


def test_chained_variables_resolve():
    text = "--a: #0000ff;\n--b: var(--a);\ncolor: var(--b);"
    resolved = _resolve_document(_resolver(), text)
    colors = {r.match.row: r.color for r in resolved if r.match.notation == Notation.VAR_USAGE}
    assert colors == {1: BLUE, 2: BLUE}


def test_fallback_used_when_undefined():
    snapshot = DocumentSnapshot.from_text("color: var(--nope, rgb(255, 0, 0));")
    resolver = _resolver()
    assert resolver.resolve_token(Notation.VAR_USAGE, "var(--nope, rgb(255, 0, 0))", snapshot, 0, 7) == RED
    assert resolver.resolve_token(Notation.VAR_USAGE, "var(--nope, bogus)", snapshot, 0, 7) is None


def _chain(length: int) -> str:
    lines = ["--v0: #ff0000;"]
    lines += [f"--v{i}: var(--v{i - 1});" for i in range(1, length + 1)]
    lines.append(f"color: var(--v{length});")
    return "\n".join(lines)


def test_variable_chain_within_depth_bound():
    text = _chain(MAX_VARIABLE_DEPTH - 1)
    snapshot = DocumentSnapshot.from_text(text)
    row = snapshot.line_count - 1
    token = f"var(--v{MAX_VARIABLE_DEPTH - 1})"
    assert _resolver().resolve_token(Notation.VAR_USAGE, token, snapshot, row, 7) == RED


def test_variable_chain_beyond_depth_bound_is_unresolved():
    text = _chain(MAX_VARIABLE_DEPTH + 4)
    snapshot = DocumentSnapshot.from_text(text)
    row = snapshot.line_count - 1
    token = f"var(--v{MAX_VARIABLE_DEPTH + 4})"
    assert _resolver().resolve_token(Notation.VAR_USAGE, token, snapshot, row, 7) is None


def test_self_reference_terminates():
    snapshot = DocumentSnapshot.from_text("--x: var(--x);\ncolor: var(--x);")
    assert _resolver().resolve_token(Notation.VAR_USAGE, "var(--x)", snapshot, 1, 7) is None

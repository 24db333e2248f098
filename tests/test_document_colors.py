from __future__ import annotations

import logging

from highlight_colors.color.models import Color
from highlight_colors.color.patterns import Notation
from highlight_colors.color.resolver import ResolvedColor
from highlight_colors.services.document_colors import fetch_document_colors, merge_document_colors
from highlight_colors.services.scanner import ColorMatch, DocumentSnapshot

GREEN = Color(0, 128, 0)


def _scanned(row, start, end, text):
    return ResolvedColor(ColorMatch(row, start, end, Notation.HEX, text, start), Color(255, 0, 0))


def test_merge_orders_by_row_and_column():
    snapshot = DocumentSnapshot.from_text("x #f00 brand\nbrand")
    scanned = [_scanned(0, 2, 6, "#f00")]

    merged = merge_document_colors(scanned, [(1, 0, 5, GREEN), (0, 7, 12, GREEN)], snapshot, (0, 1))

    assert [(m.match.row, m.match.start_col) for m in merged] == [(0, 2), (0, 7), (1, 0)]
    provider = merged[1]
    assert provider.match.notation is Notation.DOCUMENT_COLOR
    assert provider.match.text == "brand"
    assert provider.color == GREEN


def test_overlapping_entries_keep_the_first_claim():
    snapshot = DocumentSnapshot.from_text("x #f00 brand")
    scanned = [_scanned(0, 2, 6, "#f00")]
    entries = [(0, 4, 9, GREEN), (0, 7, 12, GREEN), (0, 8, 10, Color(1, 1, 1))]

    merged = merge_document_colors(scanned, entries, snapshot, (0, 0))

    assert [(m.match.start_col, m.match.end_col) for m in merged] == [(2, 6), (7, 12)]


def test_entries_outside_window_or_malformed_are_dropped():
    snapshot = DocumentSnapshot.from_text("a\nb\nc")
    entries = [(0, 0, 1, GREEN), (2, 0, 1, GREEN), (1, 0, 1, "green"), (1, 1, 1, GREEN), (None, 0, 1, GREEN)]

    merged = merge_document_colors([], entries, snapshot, (1, 2))

    assert [(m.match.row, m.match.text) for m in merged] == [(2, "c")]


def test_utf16_columns_map_back_to_text():
    snapshot = DocumentSnapshot.from_text("\U0001F600 teal", "utf-16")

    (merged,) = merge_document_colors([], [(0, 3, 7, GREEN)], snapshot, (0, 0))

    assert merged.match.text == "teal"
    assert merged.match.offset == 2


def test_fetch_tolerates_provider_failure(fake_host, caplog):
    fake_host.add_document("a", "x")
    fake_host.fail_document_colors = True

    with caplog.at_level(logging.DEBUG, logger="highlight_colors.services.document_colors"):
        assert fetch_document_colors(fake_host, "a", (0, 0)) == []

    assert "Color provider failed" in caplog.text

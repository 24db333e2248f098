"""Colors reported by the host's color provider (a language server's
document colors), merged with what the pattern scan found."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from highlight_colors.color.models import Color
from highlight_colors.color.patterns import Notation
from highlight_colors.color.resolver import ResolvedColor
from highlight_colors.services.scanner import ColorMatch, offset_for_column

if TYPE_CHECKING:
    from highlight_colors.host import DocumentId, EditorHost
    from highlight_colors.services.scanner import DocumentSnapshot

LOGGER = logging.getLogger(__name__)


def fetch_document_colors(
    host: "EditorHost",
    document_id: "DocumentId",
    window: tuple[int, int],
) -> list[tuple[int, int, int, Color]]:
    try:
        entries = host.document_colors(document_id, window[0], window[1])
    except Exception:
        LOGGER.debug("Color provider failed for %r", document_id, exc_info=True)
        return []
    return list(entries or [])


def merge_document_colors(
    resolved: Iterable[ResolvedColor],
    entries: Iterable[tuple[int, int, int, Color]],
    snapshot: "DocumentSnapshot",
    window: tuple[int, int],
) -> list[ResolvedColor]:
    """Add provider colors that do not overlap a scanned match.

    Scanned matches win overlaps, provider entries outside ``window`` or with
    an empty span are dropped. The result is ordered by row, then column.
    """
    merged = list(resolved)
    claimed: dict[int, list[tuple[int, int]]] = {}
    for item in merged:
        claimed.setdefault(item.match.row, []).append((item.match.start_col, item.match.end_col))

    start_row, end_row = window
    for entry in entries:
        try:
            row, start_col, end_col, color = entry
            row, start_col, end_col = int(row), int(start_col), int(end_col)
        except (TypeError, ValueError):
            LOGGER.debug("Ignoring malformed document color %r", entry)
            continue
        if not isinstance(color, Color) or end_col <= start_col:
            continue
        if row < start_row or row > end_row:
            continue
        spans = claimed.setdefault(row, [])
        if any(start_col < c_end and c_start < end_col for c_start, c_end in spans):
            continue
        spans.append((start_col, end_col))

        line = snapshot.line(row)
        start = offset_for_column(line, start_col, snapshot.column_unit)
        end = offset_for_column(line, end_col, snapshot.column_unit)
        match = ColorMatch(
            row=row,
            start_col=start_col,
            end_col=end_col,
            notation=Notation.DOCUMENT_COLOR,
            text=line[start:end],
            offset=start,
        )
        merged.append(ResolvedColor(match=match, color=color))

    merged.sort(key=lambda item: (item.match.row, item.match.start_col))
    return merged

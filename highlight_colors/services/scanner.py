"""Range-bounded lexical scan for color tokens.

The scanner is stateless: every call walks ``[min_row - row_offset,
max_row + row_offset]`` of a document snapshot and returns the matches in row
order, left to right inside a row. Columns are reported in the unit the host
uses to address text (UTF-16 for Qt documents, bytes for byte-addressed hosts).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Literal, Sequence

from highlight_colors.color.patterns import Notation, Pattern

if TYPE_CHECKING:
    from highlight_colors.host import EditorHost

ColumnUnit = Literal["utf-16", "utf-8", "codepoint"]
COLUMN_UNITS = ("utf-16", "utf-8", "codepoint")

ROW_OFFSET = 2
_FETCH_CHUNK = 64


def column_for_offset(line: str, offset: int, unit: ColumnUnit) -> int:
    """Convert a code point offset inside ``line`` to a host column."""
    prefix = line[: max(0, offset)]
    if unit == "utf-16":
        return sum(2 if ord(ch) > 0xFFFF else 1 for ch in prefix)
    if unit == "utf-8":
        return len(prefix.encode("utf-8"))
    return len(prefix)


def offset_for_column(line: str, column: int, unit: ColumnUnit) -> int:
    """Inverse of ``column_for_offset``; columns inside a character round down."""
    if unit == "codepoint":
        return max(0, min(len(line), int(column)))
    used = 0
    for index, ch in enumerate(line):
        if unit == "utf-16":
            width = 2 if ord(ch) > 0xFFFF else 1
        else:
            width = len(ch.encode("utf-8"))
        if used + width > column:
            return index
        used += width
    return len(line)


@dataclass(frozen=True, slots=True)
class ColorMatch:
    row: int
    start_col: int
    end_col: int
    notation: Notation
    text: str
    offset: int = 0  # code point index of the match inside its line


class DocumentSnapshot:
    """Read-through, row-addressed view of a document for a single scan."""

    def __init__(
        self,
        line_count: int,
        fetch_lines: Callable[[int, int], Sequence[str]],
        column_unit: ColumnUnit = "codepoint",
    ):
        self._line_count = max(0, int(line_count))
        self._fetch_lines = fetch_lines
        self.column_unit: ColumnUnit = column_unit if column_unit in COLUMN_UNITS else "codepoint"
        self._lines: dict[int, str] = {}

    @classmethod
    def from_host(cls, host: "EditorHost", document_id) -> "DocumentSnapshot":
        return cls(
            host.line_count(document_id),
            lambda start, end: host.get_lines(document_id, start, end),
            host.column_unit,
        )

    @classmethod
    def from_text(cls, text: str, column_unit: ColumnUnit = "codepoint") -> "DocumentSnapshot":
        lines = str(text or "").split("\n")
        return cls(len(lines), lambda start, end: lines[start:end + 1], column_unit)

    @property
    def line_count(self) -> int:
        return self._line_count

    def prefetch(self, start_row: int, end_row: int) -> None:
        start = max(0, start_row)
        end = min(self._line_count - 1, end_row)
        if end < start:
            return
        missing = [row for row in range(start, end + 1) if row not in self._lines]
        if not missing:
            return
        fetched = list(self._fetch_lines(missing[0], missing[-1]))
        for index, text in enumerate(fetched):
            self._lines.setdefault(missing[0] + index, str(text))

    def line(self, row: int) -> str:
        if row < 0 or row >= self._line_count:
            return ""
        if row not in self._lines:
            # Backward searches walk upwards, so fetch the chunk above the row.
            self.prefetch(row - _FETCH_CHUNK + 1, row)
        return self._lines.get(row, "")


def scan_window(min_row: int, max_row: int, line_count: int, row_offset: int = ROW_OFFSET) -> tuple[int, int]:
    """Expanded and clamped row window; ``(0, -1)`` when empty."""
    if line_count <= 0:
        return (0, -1)
    start = max(0, int(min_row) - row_offset)
    end = min(line_count - 1, int(max_row) + row_offset)
    if end < start:
        return (0, -1)
    return (start, end)


def scan_line(patterns: Iterable[Pattern], row: int, line: str, unit: ColumnUnit = "codepoint") -> list[ColorMatch]:
    claimed: list[tuple[int, int]] = []
    found: list[tuple[int, int, Pattern, str]] = []
    for pattern in patterns:
        for m in pattern.regex.finditer(line):
            start, end = m.span()
            if end <= start:
                continue
            if any(start < c_end and c_start < end for c_start, c_end in claimed):
                continue
            claimed.append((start, end))
            found.append((start, end, pattern, m.group(0)))

    found.sort(key=lambda item: item[0])
    return [
        ColorMatch(
            row=row,
            start_col=column_for_offset(line, start, unit),
            end_col=column_for_offset(line, end, unit),
            notation=pattern.notation,
            text=text,
            offset=start,
        )
        for start, end, pattern, text in found
    ]


def scan(
    patterns: Sequence[Pattern],
    min_row: int,
    max_row: int,
    document: DocumentSnapshot,
    row_offset: int = ROW_OFFSET,
) -> list[ColorMatch]:
    start, end = scan_window(min_row, max_row, document.line_count, row_offset)
    if end < start or not patterns:
        return []
    document.prefetch(start, end)
    matches: list[ColorMatch] = []
    for row in range(start, end + 1):
        line = document.line(row)
        if not line:
            continue
        matches.extend(scan_line(patterns, row, line, document.column_unit))
    return matches

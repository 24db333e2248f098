from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtCore import QRect, Signal
from PySide6.QtGui import QColor, QFont, QPainter, QTextBlock, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit

from highlight_colors.color.models import Color
from highlight_colors.services.decorations import Decoration
from highlight_colors.services.scanner import offset_for_column


def qcolor(color: Color) -> QColor:
    return QColor(color.red, color.green, color.blue, color.alpha)


@dataclass
class _Glyph:
    cursor: QTextCursor
    span: QTextCursor
    text: str
    color: QColor
    position: str


class ColorHighlightEditor(QPlainTextEdit):
    """Plain text editor that can show color decorations.

    Span styles are applied as extra selections; virtual glyphs are painted on
    top of the viewport. A glyph only sits at its anchor when the blank run
    there is wide enough to hold it; otherwise, and for ``eol`` glyphs, it is
    stacked after the end of its line in match order.
    """

    viewportMoved = Signal()
    focusEntered = Signal()

    GLYPH_GAP = 2

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFont(QFont("Monospace", 11))
        self._color_selections: list[QTextEdit.ExtraSelection] = []
        self._glyphs: list[_Glyph] = []
        self.verticalScrollBar().valueChanged.connect(lambda _value: self.viewportMoved.emit())
        self.horizontalScrollBar().valueChanged.connect(lambda _value: self.viewportMoved.emit())

    # ---------- decorations ----------

    def cursor_for_span(self, row: int, start_col: int, end_col: int) -> QTextCursor | None:
        block = self.document().findBlockByNumber(int(row))
        if not block.isValid():
            return None
        limit = max(0, block.length() - 1)
        cursor = QTextCursor(self.document())
        cursor.setPosition(block.position() + max(0, min(int(start_col), limit)))
        cursor.setPosition(block.position() + max(0, min(int(end_col), limit)), QTextCursor.KeepAnchor)
        return cursor

    def set_color_decorations(self, items: list[tuple[QTextCursor, Decoration]]) -> None:
        selections: list[QTextEdit.ExtraSelection] = []
        glyphs: list[_Glyph] = []
        for cursor, decoration in items:
            style = decoration.style
            if decoration.is_virtual:
                anchor = self.cursor_for_span(decoration.row, decoration.anchor_col, decoration.anchor_col)
                if anchor is None or style.foreground is None:
                    continue
                glyphs.append(
                    _Glyph(
                        cursor=anchor,
                        span=QTextCursor(cursor),
                        text=decoration.virtual_text,
                        color=qcolor(style.foreground),
                        position=decoration.virtual_position,
                    )
                )
                continue
            sel = QTextEdit.ExtraSelection()
            sel.cursor = QTextCursor(cursor)
            if style.background is not None:
                sel.format.setBackground(qcolor(style.background))
            if style.foreground is not None:
                sel.format.setForeground(qcolor(style.foreground))
            selections.append(sel)
        glyphs.sort(key=lambda glyph: (glyph.span.selectionStart(), glyph.span.selectionEnd()))
        self._color_selections = selections
        self._glyphs = glyphs
        self.setExtraSelections(list(self._color_selections))
        self.viewport().update()

    def color_glyph_count(self) -> int:
        return len(self._glyphs)

    def color_selection_count(self) -> int:
        return len(self._color_selections)

    def color_glyph_positions(self) -> list[tuple[int, int]]:
        """``(row, x)`` of every glyph in viewport coordinates, in match order."""
        return [
            (int(glyph.cursor.block().blockNumber()), rect.left())
            for glyph, rect in self._layout_color_glyphs()
        ]

    # ---------- viewport ----------

    def visible_row_range(self) -> tuple[int, int]:
        block = self.firstVisibleBlock()
        if not block.isValid():
            return (0, -1)
        top = self.blockBoundingGeometry(block).translated(self.contentOffset()).top()
        bottom = top + self.blockBoundingRect(block).height()
        first = int(block.blockNumber())
        last = first
        viewport_bottom = float(self.viewport().rect().bottom())
        while block.isValid() and top <= viewport_bottom:
            if block.isVisible():
                last = int(block.blockNumber())
            block = block.next()
            top = bottom
            bottom = top + self.blockBoundingRect(block).height()
        return (first, last)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.viewportMoved.emit()

    def focusInEvent(self, event):
        super().focusInEvent(event)
        self.focusEntered.emit()

    def paintEvent(self, event):
        super().paintEvent(event)
        self._paint_color_glyphs()

    def _fits_at_anchor(self, glyph: _Glyph) -> bool:
        # Needs a blank run after the anchor at least as wide as the glyph,
        # followed by more text on the line.
        if glyph.position == "eol":
            return False
        block = glyph.cursor.block()
        text = block.text()
        start = offset_for_column(text, glyph.cursor.positionInBlock(), "utf-16")
        tail = text[start:]
        blank = tail[: len(tail) - len(tail.lstrip())]
        if not blank or blank == tail:
            return False
        fm = self.fontMetrics()
        return fm.horizontalAdvance(blank) >= fm.horizontalAdvance(glyph.text.rstrip() or glyph.text)

    def _layout_color_glyphs(self) -> list[tuple[_Glyph, QRect]]:
        fm = self.fontMetrics()
        line_end: dict[int, int] = {}
        placed: list[tuple[_Glyph, QRect]] = []
        for glyph in self._glyphs:
            block: QTextBlock = glyph.cursor.block()
            if self._fits_at_anchor(glyph):
                rect = self.cursorRect(glyph.cursor)
                x = int(rect.left())
            else:
                number = int(block.blockNumber())
                if number not in line_end:
                    end = QTextCursor(block)
                    end.movePosition(QTextCursor.EndOfBlock)
                    line_end[number] = int(self.cursorRect(end).left()) + self.GLYPH_GAP * 2
                rect = self.cursorRect(glyph.cursor)
                x = line_end[number]
                line_end[number] = x + fm.horizontalAdvance(glyph.text)
            placed.append((glyph, QRect(x, rect.top(), fm.horizontalAdvance(glyph.text), rect.height())))
        return placed

    def _paint_color_glyphs(self) -> None:
        if not self._glyphs:
            return
        fm = self.fontMetrics()
        viewport_rect = self.viewport().rect()
        painter = QPainter(self.viewport())
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            for glyph, rect in self._layout_color_glyphs():
                if rect.bottom() < viewport_rect.top() or rect.top() > viewport_rect.bottom():
                    continue
                y = int(rect.top() + max(0, (rect.height() - fm.height()) // 2) + fm.ascent())
                painter.setPen(glyph.color)
                painter.drawText(rect.left(), y, glyph.text)
        finally:
            painter.end()

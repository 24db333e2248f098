"""``EditorHost`` implementation over ``ColorHighlightEditor`` widgets.

Decorations are anchored with ``QTextCursor`` selections so they follow edits
the same way the document text does; rows and columns are recomputed from the
cursors whenever the engine asks for them. Pushing decorations to the widgets
is batched: edits mark a document dirty and a zero-interval timer repaints
each dirty editor once when control returns to the event loop.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

from PySide6.QtCore import QTimer
from PySide6.QtGui import QTextCursor

from highlight_colors.color.models import Color
from highlight_colors.host import DocumentId, DocumentInfo, EditorEvent, EditorEventSource
from highlight_colors.services.decorations import Decoration
from highlight_colors.services.filetype import filetype_for_path
from highlight_colors.widgets.color_editor import ColorHighlightEditor


class QtEditorHost(EditorEventSource):
    column_unit = "utf-16"  # QTextDocument positions are QString (UTF-16) offsets

    def __init__(self, parent=None):
        super().__init__(parent)
        self._editors: dict[DocumentId, ColorHighlightEditor] = {}
        self._file_paths: dict[DocumentId, str] = {}
        self._buftypes: dict[DocumentId, str] = {}
        self._namespaces: dict[str, int] = {}
        self._decorations: dict[tuple[DocumentId, int], dict[int, tuple[QTextCursor, Decoration]]] = {}
        self._next_handle = 0
        self._color_providers: set[DocumentId] = set()
        self._document_colors: dict[DocumentId, list[tuple[int, int, int, Color]]] = {}

        self._dirty: set[DocumentId] = set()
        self._apply_timer = QTimer(self)
        self._apply_timer.setSingleShot(True)
        self._apply_timer.setInterval(0)
        self._apply_timer.timeout.connect(self.flush_pending)

    # ---------- registration ----------

    def register_editor(
        self,
        document_id: DocumentId,
        editor: ColorHighlightEditor,
        *,
        file_path: str = "",
        buftype: str = "",
    ) -> None:
        self._editors[document_id] = editor
        self._file_paths[document_id] = str(file_path or "")
        self._buftypes[document_id] = str(buftype or "")
        editor.textChanged.connect(lambda d=document_id: self.emit_event(EditorEvent.CONTENT_CHANGED, d))
        editor.viewportMoved.connect(lambda d=document_id: self.emit_event(EditorEvent.VIEWPORT_CHANGED, d))
        editor.focusEntered.connect(lambda d=document_id: self.emit_event(EditorEvent.DOCUMENT_ENTERED, d))

    def unregister_editor(self, document_id: DocumentId) -> None:
        if document_id not in self._editors:
            return
        self.emit_event(EditorEvent.DOCUMENT_CLOSED, document_id)
        # Repaint now; the editor is forgotten below.
        self._dirty.discard(document_id)
        self._apply(document_id)
        self._editors.pop(document_id, None)
        self._file_paths.pop(document_id, None)
        self._buftypes.pop(document_id, None)
        self._color_providers.discard(document_id)
        self._document_colors.pop(document_id, None)
        for key in [k for k in self._decorations if k[0] == document_id]:
            self._decorations.pop(key, None)

    def editor(self, document_id: DocumentId) -> ColorHighlightEditor | None:
        return self._editors.get(document_id)

    def set_color_provider_attached(self, document_id: DocumentId, attached: bool) -> None:
        if attached:
            self._color_providers.add(document_id)
            self.emit_event(EditorEvent.TOOLING_ATTACHED, document_id)
        else:
            self._color_providers.discard(document_id)
            self._document_colors.pop(document_id, None)

    def set_document_colors(
        self,
        document_id: DocumentId,
        entries: Iterable[tuple[int, int, int, Color]],
    ) -> None:
        """Store the colors a language server reported and attach it as provider."""
        self._document_colors[document_id] = [
            (int(row), int(start_col), int(end_col), color)
            for row, start_col, end_col, color in entries
        ]
        self.set_color_provider_attached(document_id, True)

    def flush_pending(self) -> None:
        self._apply_timer.stop()
        dirty = list(self._dirty)
        self._dirty.clear()
        for document_id in dirty:
            self._apply(document_id)

    # ---------- EditorHost ----------

    def create_namespace(self, name: str) -> int:
        key = str(name)
        if key not in self._namespaces:
            self._namespaces[key] = len(self._namespaces) + 1
        return self._namespaces[key]

    def document_info(self, document_id: DocumentId) -> DocumentInfo:
        editor = self._editors.get(document_id)
        if editor is None:
            return DocumentInfo(document_id, is_valid=False, listed=False)
        buftype = self._buftypes.get(document_id, "")
        return DocumentInfo(
            document_id=document_id,
            filetype=filetype_for_path(self._file_paths.get(document_id)),
            buftype=buftype,
            is_valid=True,
            is_terminal=buftype == "terminal",
            is_editable=not editor.isReadOnly(),
            listed=True,
        )

    def listed_documents(self) -> list[DocumentId]:
        return list(self._editors.keys())

    def line_count(self, document_id: DocumentId) -> int:
        return int(self._require_editor(document_id).document().blockCount())

    def get_lines(self, document_id: DocumentId, start_row: int, end_row: int) -> Sequence[str]:
        document = self._require_editor(document_id).document()
        lines: list[str] = []
        block = document.findBlockByNumber(max(0, int(start_row)))
        while block.isValid() and block.blockNumber() <= end_row:
            lines.append(block.text())
            block = block.next()
        return lines

    def visible_rows(self, document_id: DocumentId) -> tuple[int, int]:
        return self._require_editor(document_id).visible_row_range()

    def add_decoration(self, document_id: DocumentId, namespace: int, decoration: Decoration) -> int:
        editor = self._require_editor(document_id)
        cursor = editor.cursor_for_span(decoration.row, decoration.start_col, decoration.end_col)
        if cursor is None:
            raise IndexError(f"row {decoration.row} out of range")
        self._next_handle += 1
        self._decorations.setdefault((document_id, namespace), {})[self._next_handle] = (cursor, decoration)
        self._schedule_apply(document_id)
        return self._next_handle

    def remove_decoration(self, document_id: DocumentId, namespace: int, handle: int) -> None:
        entries = self._decorations.get((document_id, namespace), {})
        if handle not in entries:
            raise KeyError(handle)
        entries.pop(handle)
        self._schedule_apply(document_id)

    def decorations(
        self,
        document_id: DocumentId,
        namespace: int,
        start_row: int = 0,
        end_row: int = -1,
    ) -> list[tuple[int, Decoration]]:
        result: list[tuple[int, Decoration]] = []
        for handle, (cursor, decoration) in self._live_entries(document_id, namespace).items():
            current = self._current_decoration(document_id, cursor, decoration)
            if current.row < start_row or (end_row >= 0 and current.row > end_row):
                continue
            result.append((handle, current))
        return result

    def clear_namespace(self, document_id: DocumentId, namespace: int, start_row: int = 0, end_row: int = -1) -> None:
        entries = self._live_entries(document_id, namespace)
        for handle, (cursor, decoration) in list(entries.items()):
            row = self._current_decoration(document_id, cursor, decoration).row
            if row >= start_row and (end_row < 0 or row < end_row):
                entries.pop(handle, None)
        self._schedule_apply(document_id)

    def has_color_provider(self, document_id: DocumentId) -> bool:
        return document_id in self._color_providers

    def document_colors(
        self,
        document_id: DocumentId,
        start_row: int,
        end_row: int,
    ) -> list[tuple[int, int, int, Color]]:
        return [
            entry
            for entry in self._document_colors.get(document_id, [])
            if start_row <= entry[0] <= end_row
        ]

    # ---------- helpers ----------

    def _require_editor(self, document_id: DocumentId) -> ColorHighlightEditor:
        editor = self._editors.get(document_id)
        if editor is None:
            raise KeyError(f"unknown document {document_id!r}")
        return editor

    def _schedule_apply(self, document_id: DocumentId) -> None:
        self._dirty.add(document_id)
        if not self._apply_timer.isActive():
            self._apply_timer.start()

    def _live_entries(self, document_id: DocumentId, namespace: int) -> dict[int, tuple[QTextCursor, Decoration]]:
        entries = self._decorations.get((document_id, namespace), {})
        # Text under a decoration that was deleted collapses its cursor.
        for handle, (cursor, decoration) in list(entries.items()):
            if decoration.end_col > decoration.start_col and not cursor.hasSelection():
                entries.pop(handle, None)
        return entries

    def _current_decoration(self, document_id: DocumentId, cursor: QTextCursor, decoration: Decoration) -> Decoration:
        document = self._require_editor(document_id).document()
        start = cursor.selectionStart()
        end = cursor.selectionEnd()
        block = document.findBlock(start)
        row = int(block.blockNumber())
        start_col = int(start - block.position())
        end_col = int(end - block.position())
        if (row, start_col, end_col) == decoration.span:
            return decoration
        shift = start_col - decoration.start_col
        anchor = decoration.anchor_col + shift if decoration.anchor_col >= 0 else decoration.anchor_col
        return replace(decoration, row=row, start_col=start_col, end_col=end_col, anchor_col=anchor)

    def _apply(self, document_id: DocumentId) -> None:
        editor = self._editors.get(document_id)
        if editor is None:
            return
        items: list[tuple[QTextCursor, Decoration]] = []
        for (doc, namespace), entries in self._decorations.items():
            if doc != document_id:
                continue
            for cursor, decoration in self._live_entries(doc, namespace).values():
                items.append((cursor, self._current_decoration(doc, cursor, decoration)))
        editor.set_color_decorations(items)

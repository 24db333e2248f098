"""Capabilities the engine consumes from the hosting editor.

The engine never touches buffers, views or widgets directly; everything goes
through an ``EditorHost`` and the events an ``EditorEventSource`` raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Hashable, Protocol, Sequence

from PySide6.QtCore import QObject, Signal

if TYPE_CHECKING:
    from highlight_colors.color.models import Color
    from highlight_colors.services.decorations import Decoration
    from highlight_colors.services.scanner import ColumnUnit

DocumentId = Hashable


@dataclass(frozen=True)
class DocumentInfo:
    document_id: DocumentId
    filetype: str = ""
    buftype: str = ""
    is_valid: bool = True
    is_terminal: bool = False
    is_editable: bool = True
    listed: bool = True


class EditorEvent(str, Enum):
    CONTENT_CHANGED = "content_changed"
    EDIT_MODE_EXITED = "edit_mode_exited"
    TOOLING_ATTACHED = "tooling_attached"
    DOCUMENT_ENTERED = "document_entered"
    VIEWPORT_CHANGED = "viewport_changed"
    DOCUMENT_CLOSED = "document_closed"


FULL_REDRAW_EVENTS = frozenset(
    {
        EditorEvent.CONTENT_CHANGED,
        EditorEvent.EDIT_MODE_EXITED,
        EditorEvent.TOOLING_ATTACHED,
        EditorEvent.DOCUMENT_ENTERED,
    }
)


class EditorHost(Protocol):
    column_unit: "ColumnUnit"

    def create_namespace(self, name: str) -> int:
        ...

    def document_info(self, document_id: DocumentId) -> DocumentInfo:
        ...

    def listed_documents(self) -> list[DocumentId]:
        ...

    def line_count(self, document_id: DocumentId) -> int:
        ...

    def get_lines(self, document_id: DocumentId, start_row: int, end_row: int) -> Sequence[str]:
        """Lines ``start_row..end_row`` inclusive, 0-based."""
        ...

    def visible_rows(self, document_id: DocumentId) -> tuple[int, int]:
        """First and last visible row, 0-based and inclusive."""
        ...

    def add_decoration(self, document_id: DocumentId, namespace: int, decoration: "Decoration") -> int:
        ...

    def remove_decoration(self, document_id: DocumentId, namespace: int, handle: int) -> None:
        ...

    def decorations(
        self,
        document_id: DocumentId,
        namespace: int,
        start_row: int = 0,
        end_row: int = -1,
    ) -> list[tuple[int, "Decoration"]]:
        """``(handle, decoration)`` pairs on rows ``start_row..end_row`` inclusive; -1 means last row."""
        ...

    def clear_namespace(self, document_id: DocumentId, namespace: int, start_row: int = 0, end_row: int = -1) -> None:
        """Remove decorations on rows ``start_row`` up to, not including, ``end_row``; -1 means to the end."""
        ...

    def has_color_provider(self, document_id: DocumentId) -> bool:
        ...

    def document_colors(
        self,
        document_id: DocumentId,
        start_row: int,
        end_row: int,
    ) -> Sequence[tuple[int, int, int, "Color"]]:
        """``(row, start_col, end_col, color)`` reported by an attached color provider.

        Rows ``start_row..end_row`` inclusive, columns in ``column_unit``. Empty
        when no provider is attached.
        """
        ...


class EditorEventSource(QObject):
    eventRaised = Signal(object, object)  # EditorEvent, document_id

    def emit_event(self, kind: EditorEvent, document_id: DocumentId) -> None:
        self.eventRaised.emit(EditorEvent(kind), document_id)

from __future__ import annotations

import os

import pytest

from highlight_colors.host import DocumentInfo
from highlight_colors.settings_schema import NormalizedHighlightConfig
from highlight_colors.ui import debounce


def pytest_runtest_setup(item):
    if item.get_closest_marker("pyside_required"):
        if not os.getenv("PYSIDE_TESTS"):
            pytest.skip("PYSIDE_TESTS not set; skipping Qt widget test")


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    if os.getenv("PYSIDE_TESTS"):
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        from PySide6.QtWidgets import QApplication

        app = QApplication.instance() or QApplication([])
    else:
        from PySide6.QtCore import QCoreApplication

        app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeHost:
    """In-memory editor host with nvim-like namespace semantics."""

    column_unit = "codepoint"

    def __init__(self):
        self.documents: dict[object, dict] = {}
        self.store: dict[tuple[object, int], dict[int, object]] = {}
        self.namespaces: dict[str, int] = {}
        self.color_providers: set[object] = set()
        self.fail_clear = False
        self.fail_remove: set[int] = set()
        self.fail_add_rows: set[int] = set()
        self.fail_document_colors = False
        self.document_color_entries: dict[object, list] = {}
        self.document_color_requests: list[tuple[object, int, int]] = []
        self.fetches: list[tuple[object, int, int]] = []
        self._next_handle = 0

    def add_document(
        self,
        document_id,
        text: str,
        *,
        filetype: str = "css",
        buftype: str = "",
        visible: tuple[int, int] | None = None,
        is_terminal: bool = False,
        is_editable: bool = True,
        listed: bool = True,
    ) -> None:
        lines = text.split("\n")
        self.documents[document_id] = {
            "lines": lines,
            "info": DocumentInfo(
                document_id=document_id,
                filetype=filetype,
                buftype=buftype,
                is_valid=True,
                is_terminal=is_terminal,
                is_editable=is_editable,
                listed=listed,
            ),
            "visible": visible if visible is not None else (0, len(lines) - 1),
        }

    def scroll_to(self, document_id, first_row: int, last_row: int) -> None:
        self.documents[document_id]["visible"] = (first_row, last_row)

    def close_document(self, document_id) -> None:
        self.documents.pop(document_id, None)

    def count(self, document_id, namespace: int | None = None) -> int:
        total = 0
        for (doc, ns), entries in self.store.items():
            if doc == document_id and (namespace is None or ns == namespace):
                total += len(entries)
        return total

    # EditorHost

    def create_namespace(self, name: str) -> int:
        return self.namespaces.setdefault(name, len(self.namespaces) + 1)

    def document_info(self, document_id) -> DocumentInfo:
        doc = self.documents.get(document_id)
        if doc is None:
            return DocumentInfo(document_id, is_valid=False, listed=False)
        return doc["info"]

    def listed_documents(self) -> list:
        return [d for d, doc in self.documents.items() if doc["info"].listed]

    def line_count(self, document_id) -> int:
        return len(self.documents[document_id]["lines"])

    def get_lines(self, document_id, start_row: int, end_row: int) -> list[str]:
        self.fetches.append((document_id, start_row, end_row))
        return self.documents[document_id]["lines"][start_row:end_row + 1]

    def visible_rows(self, document_id) -> tuple[int, int]:
        return self.documents[document_id]["visible"]

    def add_decoration(self, document_id, namespace: int, decoration) -> int:
        if document_id not in self.documents:
            raise KeyError(document_id)
        if decoration.row in self.fail_add_rows:
            raise IndexError(decoration.row)
        self._next_handle += 1
        self.store.setdefault((document_id, namespace), {})[self._next_handle] = decoration
        return self._next_handle

    def remove_decoration(self, document_id, namespace: int, handle: int) -> None:
        if handle in self.fail_remove:
            raise RuntimeError(f"stale handle {handle}")
        del self.store[(document_id, namespace)][handle]

    def decorations(self, document_id, namespace: int, start_row: int = 0, end_row: int = -1) -> list:
        entries = self.store.get((document_id, namespace), {})
        return [
            (handle, d)
            for handle, d in entries.items()
            if d.row >= start_row and (end_row < 0 or d.row <= end_row)
        ]

    def clear_namespace(self, document_id, namespace: int, start_row: int = 0, end_row: int = -1) -> None:
        if self.fail_clear:
            raise RuntimeError("namespace clear failed")
        entries = self.store.get((document_id, namespace), {})
        for handle, d in list(entries.items()):
            if d.row >= start_row and (end_row < 0 or d.row < end_row):
                del entries[handle]

    def has_color_provider(self, document_id) -> bool:
        return document_id in self.color_providers

    def document_colors(self, document_id, start_row: int, end_row: int) -> list:
        self.document_color_requests.append((document_id, start_row, end_row))
        if self.fail_document_colors:
            raise RuntimeError("color provider crashed")
        # Returned unfiltered so callers have to honor the window themselves.
        return list(self.document_color_entries.get(document_id, []))


class FakeSignal:
    def __init__(self):
        self._slots = []

    def connect(self, slot) -> None:
        self._slots.append(slot)

    def emit(self) -> None:
        for slot in list(self._slots):
            slot()


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def fake_timers(monkeypatch) -> list:
    timers: list = []

    class FakeTimer:
        def __init__(self, parent=None):
            self.parent = parent
            self.timeout = FakeSignal()
            self.single_shot = False
            self.interval = None
            self.active = False
            self.started = 0
            self.deleted = False
            timers.append(self)

        def setSingleShot(self, value: bool) -> None:
            self.single_shot = bool(value)

        def start(self, interval=None) -> None:
            self.interval = interval
            self.active = True
            self.started += 1

        def stop(self) -> None:
            self.active = False

        def isActive(self) -> bool:
            return self.active

        def deleteLater(self) -> None:
            self.deleted = True

        def fire(self) -> None:
            if not self.active:
                return
            self.active = False
            self.timeout.emit()

    monkeypatch.setattr(debounce, "QTimer", FakeTimer)
    return timers


@pytest.fixture
def default_config() -> NormalizedHighlightConfig:
    return NormalizedHighlightConfig.from_mapping({})

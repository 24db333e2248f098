from __future__ import annotations

import logging
from typing import Any

from PySide6.QtCore import QObject, Signal

from highlight_colors.color.models import Color
from highlight_colors.color.patterns import build_patterns
from highlight_colors.color.resolver import ColorResolver
from highlight_colors.host import (
    FULL_REDRAW_EVENTS,
    DocumentId,
    EditorEvent,
    EditorEventSource,
    EditorHost,
)
from highlight_colors.services.completion_format import CompletionColorHint, format_completion_item
from highlight_colors.services.decorations import DecorationRenderer
from highlight_colors.services.document_colors import fetch_document_colors, merge_document_colors
from highlight_colors.services.scanner import DocumentSnapshot, scan, scan_window
from highlight_colors.settings_schema import NormalizedHighlightConfig
from highlight_colors.ui.debounce import DebounceScheduler

LOGGER = logging.getLogger(__name__)

NAMESPACE_NAME = "highlight-colors"
COMMAND_COMPLETIONS = ("On", "Off", "Toggle")


class ColorHighlightController(QObject):
    """Owns the enabled flag and drives scan -> resolve -> render per document."""

    enabledChanged = Signal(bool)
    documentHighlighted = Signal(object, int)  # document_id, decorations committed

    def __init__(
        self,
        host: EditorHost,
        settings: Any = None,
        *,
        parent: QObject | None = None,
        backdrop: Color | None = None,
    ) -> None:
        super().__init__(parent)
        self._host = host
        self._cfg = self._coerce_settings(settings)
        self._enabled = bool(self._cfg.enabled)
        self._namespace = host.create_namespace(NAMESPACE_NAME)
        self._resolver = ColorResolver(self._cfg)
        self._renderer = DecorationRenderer(backdrop)
        self._scheduler = DebounceScheduler(self)
        self._event_sources: list[EditorEventSource] = []

    # ---------- Public API ----------

    @property
    def settings(self) -> NormalizedHighlightConfig:
        return self._cfg

    @property
    def namespace(self) -> int:
        return self._namespace

    @property
    def scheduler(self) -> DebounceScheduler:
        return self._scheduler

    def is_enabled(self) -> bool:
        return self._enabled

    def update_settings(self, settings: Any) -> None:
        self._cfg = self._coerce_settings(settings)
        self._resolver = ColorResolver(self._cfg)
        if not self._enabled:
            return
        # Decorations outside the visible window were built with the old config.
        for document_id in self._listed_documents():
            self.clear_highlights(document_id)
            self.refresh_highlights(document_id, True)

    def highlight(self, min_row: int, max_row: int, document_id: DocumentId, *, clear_first: bool = False) -> int:
        if not self._enabled:
            return 0
        try:
            snapshot = DocumentSnapshot.from_host(self._host, document_id)
            patterns = build_patterns(
                self._cfg,
                has_external_color_provider=self._has_color_provider(document_id),
            )
            window = scan_window(min_row, max_row, snapshot.line_count)
            if window[1] < window[0]:
                return 0
            matches = scan(patterns, min_row, max_row, snapshot)
            resolved = self._resolver.resolve_all(matches, snapshot)
            resolved = merge_document_colors(
                resolved,
                fetch_document_colors(self._host, document_id, window),
                snapshot,
                window,
            )
            committed = self._renderer.render(
                resolved,
                self._cfg,
                self._host,
                document_id,
                self._namespace,
                window,
                clear_first=clear_first,
                snapshot=snapshot,
            )
        except Exception:
            LOGGER.debug("Highlight of %r rows %s-%s failed", document_id, min_row, max_row, exc_info=True)
            return 0
        LOGGER.debug(
            "Highlighted %r rows %s-%s: %d matches, %d decorations",
            document_id, window[0], window[1], len(matches), len(committed),
        )
        self.documentHighlighted.emit(document_id, len(committed))
        return len(committed)

    def refresh_highlights(self, document_id: DocumentId, clear_first: bool = False) -> None:
        if not self._enabled:
            return
        if not self._should_highlight(document_id):
            return
        try:
            first_row, last_row = self._host.visible_rows(document_id)
        except Exception:
            LOGGER.debug("No visible rows for %r", document_id, exc_info=True)
            return
        self.highlight(first_row, last_row, document_id, clear_first=clear_first)

    def clear_highlights(self, document_id: DocumentId) -> None:
        try:
            self._host.clear_namespace(document_id, self._namespace, 0, -1)
        except Exception:
            LOGGER.debug("Failed to clear namespace for %r", document_id, exc_info=True)
        try:
            leftovers = list(self._host.decorations(document_id, self._namespace, 0, -1))
        except Exception:
            leftovers = []
        for handle, _decoration in leftovers:
            try:
                self._host.remove_decoration(document_id, self._namespace, handle)
            except Exception:
                LOGGER.debug("Stale decoration handle %r in %r", handle, document_id, exc_info=True)

    def turn_on(self) -> None:
        self._set_enabled(True)
        for document_id in self._listed_documents():
            self.refresh_highlights(document_id, False)

    def turn_off(self) -> None:
        self._set_enabled(False)
        self._scheduler.cancel_all()
        # Exclusions only gate refreshes; every listed document gets cleared.
        for document_id in self._listed_documents():
            self.clear_highlights(document_id)

    def toggle(self) -> None:
        if self._enabled:
            self.turn_off()
        else:
            self.turn_on()

    def run_command(self, argument: Any) -> bool:
        """``on`` / ``off`` / ``toggle`` (any case); anything else is ignored."""
        arg = str(argument).strip().lower() if isinstance(argument, str) else ""
        if arg == "on":
            self.turn_on()
        elif arg == "off":
            self.turn_off()
        elif arg == "toggle":
            self.toggle()
        else:
            return False
        return True

    def format_completion_item(self, documentation: Any, kind: str | None = None) -> CompletionColorHint | None:
        return format_completion_item(documentation, self._resolver, self._cfg, kind)

    # ---------- Events ----------

    def attach_event_source(self, source: EditorEventSource) -> None:
        if source in self._event_sources:
            return
        source.eventRaised.connect(self.handle_event)
        self._event_sources.append(source)

    def detach_event_source(self, source: EditorEventSource) -> None:
        if source not in self._event_sources:
            return
        self._event_sources.remove(source)
        try:
            source.eventRaised.disconnect(self.handle_event)
        except (RuntimeError, TypeError):
            pass

    def handle_event(self, kind: Any, document_id: DocumentId) -> None:
        try:
            event = EditorEvent(kind)
        except ValueError:
            LOGGER.debug("Ignoring unknown editor event %r", kind)
            return

        if event == EditorEvent.DOCUMENT_CLOSED:
            self._scheduler.cancel(document_id)
            self.clear_highlights(document_id)
            return
        if not self._enabled:
            return
        if event in FULL_REDRAW_EVENTS:
            self.refresh_highlights(document_id, True)
        elif event == EditorEvent.VIEWPORT_CHANGED:
            self._scheduler.schedule(
                document_id,
                self._cfg.debounce_ms,
                self.refresh_highlights,
                document_id,
                False,
            )

    def shutdown(self) -> None:
        self._scheduler.shutdown()
        for source in list(self._event_sources):
            self.detach_event_source(source)

    # ---------- Helpers ----------

    @staticmethod
    def _coerce_settings(settings: Any) -> NormalizedHighlightConfig:
        if isinstance(settings, NormalizedHighlightConfig):
            return settings
        return NormalizedHighlightConfig.from_mapping(settings)

    def _set_enabled(self, enabled: bool) -> None:
        if self._enabled == enabled:
            return
        self._enabled = enabled
        self.enabledChanged.emit(enabled)

    def _listed_documents(self) -> list[DocumentId]:
        try:
            return list(self._host.listed_documents())
        except Exception:
            LOGGER.debug("Host failed to list documents", exc_info=True)
            return []

    def _has_color_provider(self, document_id: DocumentId) -> bool:
        try:
            return bool(self._host.has_color_provider(document_id))
        except Exception:
            return False

    def _should_highlight(self, document_id: DocumentId) -> bool:
        try:
            info = self._host.document_info(document_id)
        except Exception:
            return False
        if not info.is_valid or info.is_terminal or not info.is_editable:
            return False
        if info.buftype == "terminal":
            return False
        return not self._cfg.is_excluded(info.filetype, info.buftype)

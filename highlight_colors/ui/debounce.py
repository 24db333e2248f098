from __future__ import annotations

import logging
from typing import Any, Callable, Hashable

from PySide6.QtCore import QObject, QTimer

LOGGER = logging.getLogger(__name__)


class DebounceScheduler(QObject):
    """Trailing-edge debounce keyed per document.

    Each ``schedule`` call restarts the key's single-shot timer and replaces the
    pending call; when the timer runs out the last call runs exactly once.
    """

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._timers: dict[Hashable, QTimer] = {}
        self._pending: dict[Hashable, tuple[Callable[..., Any], tuple[Any, ...]]] = {}

    def schedule(self, key: Hashable, interval_ms: int, action: Callable[..., Any], *args: Any) -> None:
        self._pending[key] = (action, args)
        timer = self._timers.get(key)
        if timer is None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.timeout.connect(lambda k=key: self._flush(k))
            self._timers[key] = timer
        timer.start(max(0, int(interval_ms)))

    def cancel(self, key: Hashable) -> None:
        self._pending.pop(key, None)
        self._drop_timer(key)

    def cancel_all(self) -> None:
        for key in list(self._timers.keys()):
            self.cancel(key)
        self._pending.clear()

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def pending_keys(self) -> list[Hashable]:
        return list(self._pending.keys())

    def shutdown(self) -> None:
        self.cancel_all()

    def _flush(self, key: Hashable) -> None:
        self._drop_timer(key)
        pending = self._pending.pop(key, None)
        if pending is None:
            return
        action, args = pending
        try:
            action(*args)
        except Exception:
            # Never let a refresh failure escape into the Qt event loop.
            LOGGER.exception("Debounced action for %r failed", key)

    def _drop_timer(self, key: Hashable) -> None:
        timer = self._timers.pop(key, None)
        if timer is None:
            return
        timer.stop()
        timer.deleteLater()

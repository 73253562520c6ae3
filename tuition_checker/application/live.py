"""Latest-snapshot holder fed by a store subscription."""
from __future__ import annotations

import logging
import threading
from typing import Sequence

from tuition_checker.domain.models import Unit
from tuition_checker.domain.repositories import UnitStore, Unsubscribe

logger = logging.getLogger(__name__)


class LiveUnits:
    """Always exposes the most recent full snapshot; never merges partial updates."""

    def __init__(self, store: UnitStore) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._units: tuple[Unit, ...] = ()
        self._error: Exception | None = None
        self._version = 0
        self._unsubscribe: Unsubscribe | None = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_snapshot, self._on_error)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, units: Sequence[Unit]) -> None:
        with self._lock:
            self._units = tuple(units)
            self._error = None
            self._version += 1

    def _on_error(self, error: Exception) -> None:
        logger.error("Unit subscription failed: %s", error)
        with self._lock:
            self._error = error

    @property
    def units(self) -> tuple[Unit, ...]:
        with self._lock:
            return self._units

    @property
    def error(self) -> Exception | None:
        with self._lock:
            return self._error

    @property
    def version(self) -> int:
        """Number of snapshots received so far; 0 while still connecting."""
        with self._lock:
            return self._version

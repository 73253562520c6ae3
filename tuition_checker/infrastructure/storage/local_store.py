"""In-process unit store, optionally persisted to a JSON file."""
from __future__ import annotations

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Mapping, Sequence

from tuition_checker.domain.models import BillingRecord, ErrorKind, Unit
from tuition_checker.domain.repositories import ErrorCallback, SnapshotCallback, Unsubscribe
from tuition_checker.errors import StoreError
from tuition_checker.infrastructure.storage.snapshot import (
    UNITS_PATH,
    dataset_updates,
    new_resolution,
    resolution_path,
    student_updates,
    units_from_snapshot,
)

logger = logging.getLogger(__name__)


def _load_tree(path: Path | None) -> dict[str, Any]:
    if path is None or not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise StoreError(f"Corrupt unit store file: {path}") from exc
    return data if isinstance(data, dict) else {}


class LocalUnitStore:
    """Keeps the ``units`` tree in memory and pushes full snapshots to subscribers."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._tree = _load_tree(self._path)
        self._subscribers: list[tuple[SnapshotCallback, ErrorCallback]] = []

    def subscribe(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        entry = (on_snapshot, on_error)
        with self._lock:
            self._subscribers.append(entry)
        self._deliver(entry, self.load_units())

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def load_units(self) -> Sequence[Unit]:
        with self._lock:
            units = copy.deepcopy(self._tree.get(UNITS_PATH) or {})
        return units_from_snapshot(units)

    def write_unit_dataset(
        self,
        unit_id: str,
        name: str,
        records: Sequence[BillingRecord],
        new_students: Mapping[str, str],
    ) -> None:
        self._apply(dataset_updates(unit_id, name, records, new_students))

    def write_students(self, unit_id: str, students: Mapping[str, str]) -> None:
        if not students:
            return
        self._apply(student_updates(unit_id, students))

    def write_resolution(self, unit_id: str, student_id: str, note: str, kind: ErrorKind) -> None:
        self._apply({resolution_path(unit_id, student_id, kind): new_resolution(note).to_dict()})

    def delete_unit(self, unit_id: str) -> None:
        with self._lock:
            units = self._tree.get(UNITS_PATH) or {}
            units.pop(unit_id, None)
            self._persist()
        self._broadcast()

    def close(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def _apply(self, updates: Mapping[str, Any]) -> None:
        with self._lock:
            for path, value in updates.items():
                node = self._tree
                *parents, leaf = path.split("/")
                for key in parents:
                    node = node.setdefault(key, {})
                node[leaf] = copy.deepcopy(value)
            self._persist()
        self._broadcast()

    def _persist(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._tree, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Could not write unit store file: {self._path}") from exc

    def _broadcast(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        if not subscribers:
            return
        units = self.load_units()
        for entry in subscribers:
            self._deliver(entry, units)

    @staticmethod
    def _deliver(entry: tuple[SnapshotCallback, ErrorCallback], units: Sequence[Unit]) -> None:
        on_snapshot, on_error = entry
        try:
            on_snapshot(units)
        except Exception as exc:
            logger.exception("Unit snapshot subscriber failed")
            on_error(exc)

"""Firebase Realtime Database unit store."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import firebase_admin
from firebase_admin import credentials, db, exceptions

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

APP_NAME = "tuition-checker"


class FirebaseUnitStore:
    """Explicit client for the ``units`` tree; open at startup, ``close()`` at shutdown."""

    def __init__(self, credentials_path: str, database_url: str) -> None:
        if not database_url:
            raise StoreError("FIREBASE_DATABASE_URL is not configured")
        try:
            cred = credentials.Certificate(credentials_path)
            self._app = firebase_admin.initialize_app(cred, {"databaseURL": database_url}, name=APP_NAME)
        except (ValueError, OSError) as exc:
            raise StoreError("Could not initialise Firebase") from exc
        self._root = db.reference("/", app=self._app)
        self._units = db.reference(UNITS_PATH, app=self._app)

    def subscribe(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        def handle(event: db.Event) -> None:
            # Events carry partial paths; always hand out the full tree.
            try:
                on_snapshot(self.load_units())
            except Exception as exc:
                logger.exception("Firebase units read error")
                on_error(exc)

        try:
            registration = self._units.listen(handle)
        except exceptions.FirebaseError as exc:
            raise StoreError("Could not subscribe to units") from exc
        return registration.close

    def load_units(self) -> Sequence[Unit]:
        try:
            data: Any = self._units.get()
        except exceptions.FirebaseError as exc:
            raise StoreError("Could not read units") from exc
        return units_from_snapshot(data)

    def write_unit_dataset(
        self,
        unit_id: str,
        name: str,
        records: Sequence[BillingRecord],
        new_students: Mapping[str, str],
    ) -> None:
        try:
            self._root.update(dataset_updates(unit_id, name, records, new_students))
        except exceptions.FirebaseError as exc:
            raise StoreError(f"Could not save unit {unit_id}") from exc

    def write_students(self, unit_id: str, students: Mapping[str, str]) -> None:
        if not students:
            return
        try:
            self._root.update(student_updates(unit_id, students))
        except exceptions.FirebaseError as exc:
            raise StoreError(f"Could not register students for {unit_id}") from exc

    def write_resolution(self, unit_id: str, student_id: str, note: str, kind: ErrorKind) -> None:
        try:
            self._root.child(resolution_path(unit_id, student_id, kind)).set(new_resolution(note).to_dict())
        except exceptions.FirebaseError as exc:
            raise StoreError(f"Could not save resolution for {student_id}") from exc

    def delete_unit(self, unit_id: str) -> None:
        try:
            self._units.child(unit_id).delete()
        except exceptions.FirebaseError as exc:
            raise StoreError(f"Could not delete unit {unit_id}") from exc

    def close(self) -> None:
        firebase_admin.delete_app(self._app)

"""Builds the unit store selected by the settings."""
from __future__ import annotations

from tuition_checker.config import Settings
from tuition_checker.domain.repositories import UnitStore
from tuition_checker.errors import StoreError
from tuition_checker.infrastructure.storage.firebase_store import FirebaseUnitStore
from tuition_checker.infrastructure.storage.local_store import LocalUnitStore


def open_store(settings: Settings) -> UnitStore:
    if settings.store_backend == "local":
        return LocalUnitStore(settings.local_store_path)
    if settings.store_backend == "firebase":
        if not settings.firebase_credentials:
            raise StoreError("FIREBASE_CREDENTIALS is not configured")
        return FirebaseUnitStore(settings.firebase_credentials, settings.firebase_database_url or "")
    raise StoreError(f"Unknown store backend: {settings.store_backend}")

"""Central configuration for the tuition checker package."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from tuition_checker.domain.rules import BASE_DUE_DAYS, MIN_EXPECTED_VALUE

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(slots=True, frozen=True)
class Settings:
    store_backend: str
    data_dir: Path
    firebase_credentials: str | None
    firebase_database_url: str | None
    gemini_api_key: str | None
    gemini_model: str
    ai_timeout: float
    ai_sample_size: int
    value_threshold: float
    base_due_days: frozenset[int]
    table_limit: int
    log_level: str

    @property
    def local_store_path(self) -> Path:
        return self.data_dir / "units.json"


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid %s=%r", key, raw)
        return default


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if env is None else env
    return Settings(
        store_backend=(env.get("TUITION_STORE") or "local").strip().lower(),
        data_dir=Path(env.get("TUITION_DATA_DIR") or DATA_DIR),
        firebase_credentials=env.get("FIREBASE_CREDENTIALS") or None,
        firebase_database_url=env.get("FIREBASE_DATABASE_URL") or None,
        gemini_api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY") or None,
        gemini_model=env.get("GEMINI_MODEL") or "gemini-2.5-pro",
        ai_timeout=_float(env, "TUITION_AI_TIMEOUT", 60.0),
        ai_sample_size=50,
        value_threshold=_float(env, "TUITION_VALUE_THRESHOLD", MIN_EXPECTED_VALUE),
        base_due_days=BASE_DUE_DAYS,
        table_limit=500,
        log_level=(env.get("TUITION_LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


SETTINGS = load_settings()

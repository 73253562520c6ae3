"""Background execution of store writes and AI calls."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either the value a task produced or the error it raised."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TaskRunner:
    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tuition-task")

    def submit(self, fn: Callable[..., T], *args, **kwargs) -> Future[Outcome[T]]:
        return self._executor.submit(self._run, fn, *args, **kwargs)

    @staticmethod
    def _run(fn: Callable[..., T], *args, **kwargs) -> Outcome[T]:
        try:
            return Outcome(value=fn(*args, **kwargs))
        except Exception as exc:
            logger.exception("Task %s failed", getattr(fn, "__name__", fn))
            return Outcome(error=exc)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

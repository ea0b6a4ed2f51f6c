"""Admission gate bounding in-flight translation requests."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional
import threading

from subtitle_flow.pipelines.errors import AdmissionError


class AdmissionGate:
    """Counting gate shared by every dispatch site of a run.

    One instance bounds all outbound calls, so nested file/line dispatch never
    exceeds ``limit`` requests in flight.
    """

    def __init__(self, limit: int, timeout: Optional[float] = None):
        if int(limit) < 1:
            raise ValueError("admission limit must be >= 1")
        self.limit = int(limit)
        self.timeout = timeout
        self._semaphore = threading.BoundedSemaphore(self.limit)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    def acquire(self) -> None:
        if self.timeout is None:
            acquired = self._semaphore.acquire()
        else:
            acquired = self._semaphore.acquire(timeout=self.timeout)
        if not acquired:
            raise AdmissionError(
                f"No admission slot freed within {self.timeout}s (limit {self.limit})"
            )
        with self._lock:
            self._in_flight += 1
            if self._in_flight > self._peak:
                self._peak = self._in_flight

    def release(self) -> None:
        with self._lock:
            self._in_flight -= 1
        self._semaphore.release()

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()

"""JSON log protocol, progress tracking and the error log sink.

Emits structured lines to stdout that wrappers can parse.
Protocol prefixes:
  JSON_PROGRESS:    – processed units, total, ETA
  JSON_OUTPUT_PATH: – each written output file
  JSON_FINAL:       – summary statistics
  JSON_ERROR:       – fatal failure
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TextIO

logger = logging.getLogger(__name__)

_stdout_lock = threading.Lock()


def emit(prefix: str, data: Dict[str, Any]) -> None:
    """Thread-safe JSON log emission."""
    with _stdout_lock:
        sys.stdout.write(f"\n{prefix}:{json.dumps(data, ensure_ascii=False)}\n")
        sys.stdout.flush()


def estimate_remaining(current: int, total: int, elapsed: float) -> float:
    if current <= 0 or total <= current:
        return 0.0
    return (elapsed / current) * (total - current)


def emit_progress(*, current: int, total: int, elapsed: float) -> None:
    percent = round(min(current, total) / max(total, 1) * 100, 1)
    emit("JSON_PROGRESS", {
        "current": current,
        "total": total,
        "percent": percent,
        "elapsed": round(elapsed, 1),
        "remaining": round(estimate_remaining(current, total, elapsed), 1),
        "speed_lines": round(current / max(elapsed, 0.001), 2),
    })


def emit_output_path(path: str) -> None:
    emit("JSON_OUTPUT_PATH", {"path": path})


def emit_final(
    *,
    total_time: float,
    files_completed: int,
    files_failed: int,
    lines_processed: int,
    lines_total: int,
    lines_translated: int,
    lines_failed: int,
    cache_hits: int = 0,
    total_requests: int = 0,
) -> None:
    emit("JSON_FINAL", {
        "totalTime": round(total_time, 1),
        "filesCompleted": files_completed,
        "filesFailed": files_failed,
        "linesProcessed": lines_processed,
        "linesTotal": lines_total,
        "linesTranslated": lines_translated,
        "linesFailed": lines_failed,
        "cacheHits": cache_hits,
        "totalRequests": total_requests,
    })


def emit_error(message: str, title: str = "Subtitle Flow Error") -> None:
    emit("JSON_ERROR", {
        "title": title,
        "message": message,
    })


@dataclass
class ProgressTracker:
    """Process-wide counters for one run.

    ``processed_units`` only grows; ``total_units`` is seeded by the pre-scan.
    """

    total_units: int = 0
    processed_units: int = 0
    translated_lines: int = 0
    failed_lines: int = 0
    completed_files: int = 0
    failed_files: int = 0
    emit_enabled: bool = True
    start_time: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _last_emit_at: float = 0.0
    _min_emit_interval_sec: float = 0.2

    def advance(self, units: int = 1) -> None:
        with self._lock:
            self.processed_units += units
        self.emit_progress_snapshot()

    def note_translated(self) -> None:
        with self._lock:
            self.translated_lines += 1

    def note_line_failure(self) -> None:
        with self._lock:
            self.failed_lines += 1

    def note_file_done(self) -> None:
        with self._lock:
            self.completed_files += 1

    def note_file_failure(self) -> None:
        with self._lock:
            self.failed_files += 1

    @property
    def elapsed(self) -> float:
        return max(time.time() - self.start_time, 0.0)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "current": self.processed_units,
                "total": self.total_units,
                "translated": self.translated_lines,
                "failed": self.failed_lines,
                "files": self.completed_files,
                "failed_files": self.failed_files,
            }

    def emit_progress_snapshot(self, *, force: bool = False) -> None:
        """Emit a progress snapshot (throttled by default)."""
        if not self.emit_enabled:
            return
        now = time.time()
        with self._lock:
            if not force and (now - self._last_emit_at) < self._min_emit_interval_sec:
                return
            current = self.processed_units
            total = self.total_units
            self._last_emit_at = now
        emit_progress(current=current, total=total, elapsed=now - self.start_time)

    def emit_final_stats(self, *, cache_hits: int = 0, total_requests: int = 0) -> None:
        snap = self.snapshot()
        if not self.emit_enabled:
            return
        self.emit_progress_snapshot(force=True)
        emit_final(
            total_time=self.elapsed,
            files_completed=snap["files"],
            files_failed=snap["failed_files"],
            lines_processed=snap["current"],
            lines_total=snap["total"],
            lines_translated=snap["translated"],
            lines_failed=snap["failed"],
            cache_hits=cache_hits,
            total_requests=total_requests,
        )


class ErrorLog:
    """Append-only error sink. Each entry is one line, mirrored as a console warning."""

    DEFAULT_PATH = "translate_errors.log"

    def __init__(self, path: Optional[str] = None, stream: Optional[TextIO] = None):
        self.path = path or self.DEFAULT_PATH
        self._lock = threading.Lock()
        self._count = 0
        self._owns_stream = stream is None
        # Raises OSError when the log cannot be opened; callers treat that as fatal.
        self._stream: TextIO = stream or open(self.path, "a", encoding="utf-8")

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def write(self, message: str) -> None:
        line = " ".join(str(message).splitlines())
        logger.warning(line)
        with self._lock:
            self._count += 1
            try:
                self._stream.write(line + "\n")
                self._stream.flush()
            except (OSError, ValueError) as e:
                logger.error(f"Failed to write error log {self.path}: {e}")

    def close(self) -> None:
        with self._lock:
            if self._owns_stream and not self._stream.closed:
                self._stream.close()

    def __enter__(self) -> "ErrorLog":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

"""Batch coordinator: discover subtitle files and run file pipelines concurrently."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, List
import logging
import os
import time

from subtitle_flow.pipelines.context import RunContext
from subtitle_flow.pipelines.errors import PipelineError, ReadError, WalkError
from subtitle_flow.pipelines.file_pipeline import FilePipeline, count_lines

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    files_completed: int
    files_failed: int
    lines_total: int
    lines_processed: int
    lines_translated: int
    lines_failed: int
    duration: float

    @property
    def ok(self) -> bool:
        return self.files_failed == 0 and self.lines_failed == 0


def is_subtitle_file(name: str, extensions: Iterable[str]) -> bool:
    lower = name.lower()
    return any(lower.endswith(ext) for ext in extensions)


def is_eligible(name: str, extensions: Iterable[str]) -> bool:
    return not name.startswith(".") and is_subtitle_file(name, extensions)


class BatchCoordinator:
    def __init__(self, context: RunContext):
        self.context = context
        self.pipeline = FilePipeline(context)

    def discover(self, root: str) -> List[str]:
        """Walk ``root`` and return eligible files; entry errors are logged and skipped."""
        error_log = self.context.error_log
        extensions = self.context.extensions

        def on_walk_error(exc: OSError) -> None:
            err = WalkError(f"Walk error {exc.filename}: {exc}", path=exc.filename)
            error_log.write(str(err))

        found: List[str] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                if not is_eligible(name, extensions):
                    continue
                path = os.path.join(dirpath, name)
                if os.path.isfile(path):
                    found.append(path)
        return found

    def prescan(self, paths: Iterable[str]) -> int:
        total = 0
        for path in paths:
            try:
                total += count_lines(path)
            except ReadError as exc:
                self.context.error_log.write(f"Failed to open file {path}: {exc}")
        return total

    def process_directory(self, root: str, target_lang: str) -> BatchResult:
        ctx = self.context
        start = time.time()
        paths = self.discover(root)
        ctx.tracker.total_units = self.prescan(paths)
        ctx.tracker.emit_progress_snapshot(force=True)
        logger.info(
            f"Found {len(paths)} subtitle file(s), {ctx.tracker.total_units} lines, "
            f"{ctx.workers} worker(s)"
        )

        with ThreadPoolExecutor(
            max_workers=ctx.workers, thread_name_prefix="file"
        ) as executor:
            futures: Dict[Future, str] = {
                executor.submit(self._run_file, path, target_lang): path
                for path in paths
            }
            for future in as_completed(futures):
                path = futures[future]
                try:
                    future.result()
                except Exception as exc:
                    ctx.tracker.note_file_failure()
                    ctx.error_log.write(f"Panic in file {path}: {type(exc).__name__}: {exc}")

        return self._result(start)

    def process_single(self, path: str, target_lang: str) -> BatchResult:
        """Translate one file; pipeline errors propagate to the caller."""
        ctx = self.context
        start = time.time()
        ctx.tracker.total_units = count_lines(path)
        ctx.tracker.emit_progress_snapshot(force=True)
        self.pipeline.process(path, target_lang)
        return self._result(start)

    def run(self, input_path: str, target_lang: str) -> BatchResult:
        if os.path.isdir(input_path):
            return self.process_directory(input_path, target_lang)
        return self.process_single(input_path, target_lang)

    def _run_file(self, path: str, target_lang: str) -> None:
        try:
            self.pipeline.process(path, target_lang)
        except PipelineError as exc:
            self.context.tracker.note_file_failure()
            self.context.error_log.write(f"Translation error {path}: {exc}")

    def _result(self, start: float) -> BatchResult:
        snap = self.context.tracker.snapshot()
        return BatchResult(
            files_completed=snap["files"],
            files_failed=snap["failed_files"],
            lines_total=snap["total"],
            lines_processed=snap["current"],
            lines_translated=snap["translated"],
            lines_failed=snap["failed"],
            duration=time.time() - start,
        )

"""File pipeline: classify lines, translate concurrently, reassemble in order."""

from __future__ import annotations

from concurrent.futures import Future, as_completed
from typing import Dict, List, Optional
import logging
import os

from subtitle_flow.pipelines.context import RunContext
from subtitle_flow.pipelines.errors import ReadError, WriteError
from subtitle_flow.utils.log_protocol import emit_output_path

logger = logging.getLogger(__name__)


def output_path_for(path: str, target_lang: str) -> str:
    """``name.ext`` -> ``name_<lang>.ext`` next to the input."""
    base, ext = os.path.splitext(path)
    return f"{base}_{target_lang}{ext}"


def read_lines(path: str) -> List[str]:
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return [raw.rstrip("\n") for raw in f]
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Cannot read {path}: {exc}", path=path) from exc


def count_lines(path: str) -> int:
    return len(read_lines(path))


class FilePipeline:
    def __init__(self, context: RunContext):
        self.context = context

    def process(self, path: str, target_lang: str) -> str:
        """Translate one file and return the output path.

        Raises ReadError / WriteError; per-line translation failures are
        logged and replaced by the original line.
        """
        ctx = self.context
        lines = read_lines(path)
        results: List[Optional[str]] = [None] * len(lines)
        futures: Dict[Future, int] = {}

        for idx, text in enumerate(lines):
            if not ctx.line_policy.is_translatable(text):
                results[idx] = text
                ctx.tracker.advance()
                continue
            future = ctx.line_executor.submit(
                self._translate_unit, path, idx, text, target_lang
            )
            futures[future] = idx

        for future in as_completed(futures):
            results[futures[future]] = future.result()

        missing = [idx for idx, value in enumerate(results) if value is None]
        if missing:
            # Unreachable unless a unit escaped its own error boundary.
            raise RuntimeError(f"Unfilled result slots in {path}: {missing[:5]}")

        output_path = output_path_for(path, target_lang)
        self._write(output_path, "\n".join(results))
        ctx.tracker.note_file_done()
        emit_output_path(output_path)
        logger.debug(f"Wrote {output_path} ({len(lines)} lines)")
        return output_path

    def _translate_unit(self, path: str, idx: int, text: str, target_lang: str) -> str:
        ctx = self.context
        try:
            translated = ctx.translator.translate(text, target_lang)
        except Exception as exc:
            ctx.tracker.note_line_failure()
            ctx.error_log.write(
                f"Line error in file '{path}' [line {idx + 1}]: '{text}' ({type(exc).__name__}: {exc})"
            )
            return text
        else:
            ctx.tracker.note_translated()
            return translated
        finally:
            ctx.tracker.advance()

    @staticmethod
    def _write(output_path: str, content: str) -> None:
        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as exc:
            raise WriteError(f"Cannot write {output_path}: {exc}", path=output_path) from exc

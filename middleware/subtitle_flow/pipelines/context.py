"""Run context shared by the batch coordinator, file pipelines and translator."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List

from subtitle_flow.core.cache import TranslationCache
from subtitle_flow.policies.line_policy import SubtitleLinePolicy
from subtitle_flow.providers.base import BaseTranslator
from subtitle_flow.providers.libretranslate import LibreTranslateClient
from subtitle_flow.registry.config_store import TranslatorConfig
from subtitle_flow.utils.admission import AdmissionGate
from subtitle_flow.utils.log_protocol import ErrorLog, ProgressTracker


@dataclass
class RunContext:
    translator: BaseTranslator
    cache: TranslationCache
    gate: AdmissionGate
    tracker: ProgressTracker
    error_log: ErrorLog
    line_policy: SubtitleLinePolicy = field(default_factory=SubtitleLinePolicy)
    extensions: List[str] = field(default_factory=lambda: [".vtt", ".srt"])
    line_executor: ThreadPoolExecutor | None = None

    def __post_init__(self) -> None:
        if self.line_executor is None:
            # Line units of every file share this pool; its size equals the gate limit.
            self.line_executor = ThreadPoolExecutor(
                max_workers=self.gate.limit, thread_name_prefix="line"
            )

    @property
    def workers(self) -> int:
        return self.gate.limit

    @property
    def request_count(self) -> int:
        return int(getattr(self.translator, "request_count", 0))

    def close(self) -> None:
        if self.line_executor is not None:
            self.line_executor.shutdown(wait=True)

    def __enter__(self) -> "RunContext":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def build_context(
    config: TranslatorConfig,
    error_log: ErrorLog,
    *,
    emit_progress: bool = True,
) -> RunContext:
    cache = TranslationCache(config.cache_file)
    if config.cache_file and not cache.load() and cache.load_error:
        error_log.write(cache.load_error)
    gate = AdmissionGate(config.workers, timeout=config.admission_timeout)
    profile = config.to_profile()
    translator = LibreTranslateClient(profile, cache=cache, gate=gate)
    return RunContext(
        translator=translator,
        cache=cache,
        gate=gate,
        tracker=ProgressTracker(emit_enabled=emit_progress),
        error_log=error_log,
        line_policy=SubtitleLinePolicy(profile),
        extensions=list(config.extensions),
    )

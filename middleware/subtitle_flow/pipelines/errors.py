"""Pipeline-level errors."""

from __future__ import annotations


class PipelineError(RuntimeError):
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ReadError(PipelineError):
    pass


class WriteError(PipelineError):
    pass


class WalkError(PipelineError):
    pass


class AdmissionError(PipelineError):
    pass

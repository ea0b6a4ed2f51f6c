"""Translator base classes and client-side errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class TranslationRequest:
    text: str
    source_lang: str
    target_lang: str
    format: str = "text"
    api_key: Optional[str] = None
    timeout: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "q": self.text,
            "source": self.source_lang,
            "target": self.target_lang,
            "format": self.format,
        }
        if self.api_key:
            payload["api_key"] = self.api_key
        return payload


@dataclass
class TranslationResponse:
    text: str
    raw: Any
    status_code: Optional[int] = None
    duration_ms: Optional[int] = None
    url: Optional[str] = None


class TranslationError(RuntimeError):
    error_type = "unknown_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        duration_ms: int | None = None,
        url: str | None = None,
        response_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.duration_ms = duration_ms
        self.url = url
        self.response_text = response_text


class NetworkError(TranslationError):
    error_type = "network_error"


class RequestTimeoutError(TranslationError):
    error_type = "timeout"


class ServiceError(TranslationError):
    error_type = "http_error"


class DecodeError(TranslationError):
    error_type = "invalid_response"


class BaseTranslator:
    def __init__(self, profile: Dict[str, Any]):
        self.profile = profile

    def build_request(self, text: str, target_lang: str) -> TranslationRequest:
        raise NotImplementedError

    def send(self, request: TranslationRequest) -> TranslationResponse:
        raise NotImplementedError

    def translate(self, text: str, target_lang: str) -> str:
        raise NotImplementedError

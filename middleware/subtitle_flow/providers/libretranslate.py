"""LibreTranslate-compatible HTTP translator."""

from __future__ import annotations

from typing import Any, Dict, Optional
import json
import logging
import threading
import time

import requests

from subtitle_flow.core.cache import TranslationCache
from subtitle_flow.utils.admission import AdmissionGate

from .base import (
    BaseTranslator,
    DecodeError,
    NetworkError,
    RequestTimeoutError,
    ServiceError,
    TranslationRequest,
    TranslationResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:5001/translate"
DEFAULT_SOURCE_LANG = "en"
DEFAULT_TIMEOUT_SECONDS = 10.0
MAX_ERROR_TEXT_CHARS = 4000


def _parse_timeout_seconds(value: Any) -> float | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = float(text)
    except (ValueError, TypeError):
        return None
    return parsed if parsed > 0 else None


class LibreTranslateClient(BaseTranslator):
    """Translates one text unit per call; owns the shared response cache."""

    def __init__(
        self,
        profile: Dict[str, Any],
        cache: Optional[TranslationCache] = None,
        gate: Optional[AdmissionGate] = None,
    ):
        super().__init__(profile)
        self.endpoint = str(profile.get("endpoint") or DEFAULT_ENDPOINT).strip()
        self.source_lang = str(profile.get("source_lang") or DEFAULT_SOURCE_LANG)
        self.api_key = str(profile.get("api_key") or "").strip() or None
        self.timeout = (
            _parse_timeout_seconds(profile.get("timeout")) or DEFAULT_TIMEOUT_SECONDS
        )
        self.cache = cache if cache is not None else TranslationCache()
        self.gate = gate
        self._session = requests.Session()
        self._lock = threading.Lock()
        self._request_count = 0

    @property
    def request_count(self) -> int:
        with self._lock:
            return self._request_count

    def build_request(self, text: str, target_lang: str) -> TranslationRequest:
        return TranslationRequest(
            text=text,
            source_lang=self.source_lang,
            target_lang=target_lang,
            api_key=self.api_key,
            timeout=self.timeout,
        )

    def translate(self, text: str, target_lang: str) -> str:
        text = text.strip()
        cached = self.cache.get(text, target_lang)
        if cached is not None:
            logger.debug(f"Cache hit [{target_lang}]: {text!r}")
            return cached

        request = self.build_request(text, target_lang)
        if self.gate is not None:
            with self.gate.slot():
                response = self.send(request)
        else:
            response = self.send(request)

        self.cache.put(text, target_lang, response.text)
        return response.text

    def send(self, request: TranslationRequest) -> TranslationResponse:
        url = self.endpoint
        payload = request.to_payload()
        timeout_seconds = request.timeout or DEFAULT_TIMEOUT_SECONDS

        with self._lock:
            self._request_count += 1

        start = time.perf_counter()
        try:
            resp = self._session.post(
                url,
                headers={"Content-Type": "application/json"},
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                timeout=timeout_seconds,
            )
        except requests.Timeout as exc:
            duration_ms = int((time.perf_counter() - start) * 1000)
            raise RequestTimeoutError(
                f"Translation request timeout: {exc}",
                duration_ms=duration_ms,
                url=url,
            ) from exc
        except requests.RequestException as exc:
            duration_ms = int((time.perf_counter() - start) * 1000)
            raise NetworkError(
                f"Translation request failed: {exc}",
                duration_ms=duration_ms,
                url=url,
            ) from exc

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(f"POST {url} -> {resp.status_code} in {duration_ms}ms")

        if resp.status_code != 200:
            body_preview = (resp.text or "").strip()[:MAX_ERROR_TEXT_CHARS]
            raise ServiceError(
                f"API response: HTTP {resp.status_code}",
                status_code=resp.status_code,
                duration_ms=duration_ms,
                url=url,
                response_text=body_preview,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            body_preview = (resp.text or "").strip()[:MAX_ERROR_TEXT_CHARS]
            raise DecodeError(
                "Translation response is not JSON",
                status_code=resp.status_code,
                duration_ms=duration_ms,
                url=url,
                response_text=body_preview,
            ) from exc

        text = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(text, str):
            body_preview = (resp.text or "").strip()[:MAX_ERROR_TEXT_CHARS]
            raise DecodeError(
                "Translation response missing translatedText",
                status_code=resp.status_code,
                duration_ms=duration_ms,
                url=url,
                response_text=body_preview,
            )

        return TranslationResponse(
            text=text,
            raw=data,
            status_code=resp.status_code,
            duration_ms=duration_ms,
            url=url,
        )

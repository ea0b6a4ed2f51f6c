# Line classification for subtitle files.

from __future__ import annotations

from typing import Any, Dict

STRUCTURAL = "structural"
TRANSLATABLE = "translatable"

DEFAULT_HEADER_TOKEN = "WEBVTT"
DEFAULT_CUE_SEPARATOR = "-->"


def classify_line(
    text: str,
    *,
    header_token: str = DEFAULT_HEADER_TOKEN,
    cue_separator: str = DEFAULT_CUE_SEPARATOR,
) -> str:
    """Return STRUCTURAL for blank lines, cue timings and the format header."""
    if not text.strip():
        return STRUCTURAL
    if cue_separator and cue_separator in text:
        return STRUCTURAL
    if header_token and text == header_token:
        return STRUCTURAL
    return TRANSLATABLE


class SubtitleLinePolicy:
    def __init__(self, profile: Dict[str, Any] | None = None):
        profile = profile or {}
        self.header_token = str(profile.get("header_token") or DEFAULT_HEADER_TOKEN)
        self.cue_separator = str(profile.get("cue_separator") or DEFAULT_CUE_SEPARATOR)

    def classify(self, text: str) -> str:
        return classify_line(
            text,
            header_token=self.header_token,
            cue_separator=self.cue_separator,
        )

    def is_translatable(self, text: str) -> bool:
        return self.classify(text) == TRANSLATABLE

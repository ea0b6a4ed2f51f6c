"""Run configuration (YAML file + environment + CLI overrides)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional
import os

import yaml

ENV_ENDPOINT = "SUBTITLE_FLOW_ENDPOINT"
ENV_API_KEY = "SUBTITLE_FLOW_API_KEY"


class ConfigError(ValueError):
    pass


def _default_extensions() -> List[str]:
    return [".vtt", ".srt"]


@dataclass
class TranslatorConfig:
    endpoint: str = "http://localhost:5001/translate"
    api_key: Optional[str] = None
    timeout: float = 10.0
    source_lang: str = "en"
    target_lang: str = "ru"
    workers: int = 5
    extensions: List[str] = field(default_factory=_default_extensions)
    header_token: str = "WEBVTT"
    cue_separator: str = "-->"
    error_log: str = "translate_errors.log"
    cache_file: Optional[str] = None
    admission_timeout: Optional[float] = None

    # Keys a YAML file may set; source language is fixed.
    FILE_KEYS = (
        "endpoint",
        "api_key",
        "timeout",
        "target_lang",
        "workers",
        "extensions",
        "header_token",
        "cue_separator",
        "error_log",
        "cache_file",
        "admission_timeout",
    )

    def validate(self) -> "TranslatorConfig":
        try:
            self.workers = int(self.workers)
            self.timeout = float(self.timeout)
            if self.admission_timeout is not None:
                self.admission_timeout = float(self.admission_timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid numeric setting: {exc}") from exc
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if self.admission_timeout is not None and self.admission_timeout <= 0:
            raise ConfigError("admission_timeout must be > 0")
        if not str(self.target_lang or "").strip():
            raise ConfigError("target language must not be empty")
        self.extensions = normalize_extensions(self.extensions)
        if not self.extensions:
            raise ConfigError("at least one subtitle extension is required")
        return self

    def update(self, values: Mapping[str, Any]) -> "TranslatorConfig":
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if value is None:
                continue
            if key not in known:
                raise ConfigError(f"Unknown config key: {key}")
            setattr(self, key, value)
        return self

    def to_profile(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_extensions(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ConfigError(f"extensions must be a list, got {type(raw).__name__}")
    result: List[str] = []
    for item in raw:
        ext = str(item or "").strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        if ext not in result:
            result.append(ext)
    return result


def load_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    unknown = sorted(set(data) - set(TranslatorConfig.FILE_KEYS))
    if unknown:
        raise ConfigError(f"Unknown config key(s) in {path}: {', '.join(unknown)}")
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    endpoint = str(environ.get(ENV_ENDPOINT) or "").strip()
    if endpoint:
        values["endpoint"] = endpoint
    api_key = str(environ.get(ENV_API_KEY) or "").strip()
    if api_key:
        values["api_key"] = api_key
    return values


def resolve_config(
    config_path: Optional[str] = None,
    cli_values: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TranslatorConfig:
    """Defaults < YAML file < environment < CLI flags."""
    config = TranslatorConfig()
    if config_path:
        config.update(load_config_file(config_path))
    config.update(env_overrides(environ))
    if cli_values:
        config.update(cli_values)
    return config.validate()

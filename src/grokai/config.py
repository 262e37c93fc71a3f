from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError

DEFAULT_BASE_URL = "https://api.x.ai"
VISION_MODEL = "grok-2-vision-latest"
TEXT_MODEL = "grok-2-latest"

CONFIG_PATH = Path.home() / ".config" / "grokai" / "config.yml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Environment variable -> config key.  XAI_API_KEY is handled separately
# because it is the only required value.
_ENV_OVERRIDES = {
    "XAI_BASE_URL": "base_url",
    "GROKAI_VISION_MODEL": "vision_model",
    "GROKAI_TEXT_MODEL": "text_model",
    "GROKAI_LOG_LEVEL": "log_level",
}


@dataclass(frozen=True)
class AppConfig:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    vision_model: str = VISION_MODEL
    text_model: str = TEXT_MODEL
    temperature: float = 0.7
    # None leaves httpx's own default timeout in place.
    timeout: float | None = None
    log_level: str = "INFO"
    # Only used by `grokai serve`.
    host: str = "127.0.0.1"
    port: int = 8096


def _validate(cfg: dict[str, Any]) -> dict[str, Any]:
    defaults = asdict(AppConfig())
    merged = {**defaults, **{k: v for k, v in cfg.items() if k in defaults}}
    for key in ("base_url", "vision_model", "text_model", "host"):
        if not isinstance(merged.get(key), str) or not merged[key].strip():
            merged[key] = defaults[key]
        else:
            merged[key] = merged[key].strip()
    merged["base_url"] = merged["base_url"].rstrip("/")
    raw_temp = merged.get("temperature")
    merged["temperature"] = (
        float(raw_temp)
        if isinstance(raw_temp, (int, float)) and not isinstance(raw_temp, bool) and 0.0 < float(raw_temp) <= 2.0
        else defaults["temperature"]
    )
    raw_timeout = merged.get("timeout")
    merged["timeout"] = (
        float(raw_timeout)
        if isinstance(raw_timeout, (int, float)) and not isinstance(raw_timeout, bool) and raw_timeout > 0
        else None
    )
    level = str(merged.get("log_level") or "").upper()
    merged["log_level"] = level if level in _LOG_LEVELS else defaults["log_level"]
    raw_port = merged.get("port")
    merged["port"] = (
        int(raw_port)
        if isinstance(raw_port, int) and not isinstance(raw_port, bool) and 1 <= raw_port <= 65535
        else defaults["port"]
    )
    return merged


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        return {}
    # The credential only ever comes from the environment.
    raw.pop("api_key", None)
    return raw


def load_config(path: Path = CONFIG_PATH, env: Mapping[str, str] | None = None) -> AppConfig:
    """Build the process configuration from the YAML file and environment.

    Raises :class:`ConfigError` when ``XAI_API_KEY`` is not set.
    """
    env = os.environ if env is None else env
    raw = _read_file(path)
    for var, key in _ENV_OVERRIDES.items():
        value = env.get(var, "").strip()
        if value:
            raw[key] = value
    cfg = _validate(raw)
    api_key = env.get("XAI_API_KEY", "").strip()
    if not api_key:
        raise ConfigError("XAI_API_KEY environment variable is required")
    cfg["api_key"] = api_key
    return AppConfig(**cfg)

"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .media import DEFAULT_MAX_IMAGE_BYTES
from .wizard.models import FailurePolicy

ENV_PREFIX = "CGI_DIRECTOR_"

DEFAULT_OPTIONS_MODEL = "gemini-3-flash-preview"
DEFAULT_SCRIPT_MODEL = "gemini-3-pro-preview"
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"


@dataclass(frozen=True)
class DirectorSettings:
    options_model: str = DEFAULT_OPTIONS_MODEL
    script_model: str = DEFAULT_SCRIPT_MODEL
    openai_model: str = DEFAULT_OPENAI_MODEL
    temperature: float = 0.7
    option_count: int = 5
    min_clips: int = 3
    max_clips: int = 6
    min_clip_seconds: int = 8
    max_clip_seconds: int = 10
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    include_language_step: bool = True
    default_language: str = "Urdu"
    failure_policy: FailurePolicy = FailurePolicy.STAY
    log_level: str = "INFO"
    log_file: str | None = None


def read_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _setting(name: str) -> str | None:
    return read_env(ENV_PREFIX + name)


def _int_setting(name: str, default: int) -> int:
    raw = _setting(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def _float_setting(name: str, default: float) -> float:
    raw = _setting(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _bool_setting(name: str, default: bool) -> bool:
    raw = _setting(name)
    if raw is None:
        return default
    value = raw.lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be true or false, got {raw!r}")


def load_settings() -> DirectorSettings:
    """Build settings from ``CGI_DIRECTOR_*`` environment variables."""
    defaults = DirectorSettings()
    policy_raw = (_setting("FAILURE_POLICY") or defaults.failure_policy.value).lower()
    try:
        policy = FailurePolicy(policy_raw)
    except ValueError as exc:
        raise ValueError(
            f"{ENV_PREFIX}FAILURE_POLICY must be 'stay' or 'reset', got {policy_raw!r}"
        ) from exc

    max_image_mb = _float_setting("MAX_IMAGE_MB", defaults.max_image_bytes / (1024 * 1024))

    return DirectorSettings(
        options_model=_setting("OPTIONS_MODEL") or defaults.options_model,
        script_model=_setting("SCRIPT_MODEL") or defaults.script_model,
        openai_model=_setting("OPENAI_MODEL") or defaults.openai_model,
        temperature=_float_setting("TEMPERATURE", defaults.temperature),
        option_count=_int_setting("OPTION_COUNT", defaults.option_count),
        max_image_bytes=int(max_image_mb * 1024 * 1024),
        include_language_step=_bool_setting("LANGUAGE_STEP", defaults.include_language_step),
        default_language=_setting("DEFAULT_LANGUAGE") or defaults.default_language,
        failure_policy=policy,
        log_level=(_setting("LOG_LEVEL") or defaults.log_level).upper(),
        log_file=_setting("LOG_FILE"),
    )

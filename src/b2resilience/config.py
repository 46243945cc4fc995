"""XDG config loading/saving for retry tuning."""

from __future__ import annotations

import logging as py_logging
import os
import random
import sys
from contextlib import suppress
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from b2resilience.backoff import (
    DEFAULT_CEILING_SECONDS,
    DEFAULT_INITIAL_SECONDS,
    DEFAULT_JITTER_DIVISOR,
    BackoffPolicy,
)
from b2resilience.errors import ErrorCode, ResilienceError

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/b2resilience/config.toml").expanduser()
LOG_LEVEL_ENV = "B2RESILIENCE_LOG_LEVEL"
INITIAL_BACKOFF_ENV = "B2RESILIENCE_INITIAL_BACKOFF"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "WARNING", "ERROR"}


class ResilienceConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    initial_backoff_seconds: float = Field(default=DEFAULT_INITIAL_SECONDS, gt=0)
    backoff_ceiling_seconds: float = Field(default=DEFAULT_CEILING_SECONDS, gt=0)
    jitter_divisor: float = Field(default=DEFAULT_JITTER_DIVISOR, gt=0)
    serialize_reauth: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return normalized

    def backoff_policy(self, rng: random.Random | None = None) -> BackoffPolicy:
        return BackoffPolicy(
            initial_seconds=self.initial_backoff_seconds,
            ceiling_seconds=self.backoff_ceiling_seconds,
            jitter_divisor=self.jitter_divisor,
            rng=rng or random.Random(),
        )


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _apply(cfg: ResilienceConfig, name: str, value: object, *, strict: bool) -> None:
    try:
        setattr(cfg, name, value)
    except ValidationError as exc:
        if strict:
            raise ResilienceError(
                f"Invalid config value for {name}.",
                code=ErrorCode.CONFIG_ERROR,
                hint=exc.errors()[0]["msg"],
            ) from exc
        logger.warning("Ignoring invalid config value for %s", name)


def _sanitize(raw: dict[str, object], *, strict: bool) -> ResilienceConfig:
    cfg = ResilienceConfig()
    for name in ResilienceConfig.model_fields:
        if name in raw:
            _apply(cfg, name, raw[name], strict=strict)

    env_level = os.getenv(LOG_LEVEL_ENV, "").strip()
    if env_level:
        _apply(cfg, "log_level", env_level, strict=strict)
    env_backoff = os.getenv(INITIAL_BACKOFF_ENV, "").strip()
    if env_backoff:
        _apply(cfg, "initial_backoff_seconds", env_backoff, strict=strict)
    return cfg


def parse_config(raw: dict[str, object]) -> ResilienceConfig:
    return _sanitize(raw, strict=True)


def load_config(path: str | Path | None = None) -> ResilienceConfig:
    resolved = get_config_path(path)
    raw: object = {}
    if resolved.exists():
        try:
            with resolved.open("rb") as handle:
                raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, OSError):
            logger.warning("Unreadable config at %s; using defaults", resolved)
            raw = {}
    if not isinstance(raw, dict):
        raw = {}
    return _sanitize(raw, strict=False)


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def save_config(config: ResilienceConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"{name} = {_toml_scalar(value)}" for name, value in config.model_dump().items()]
    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved

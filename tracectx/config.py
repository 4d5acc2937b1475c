"""
Configuration loading for tracectx.

Sources, highest priority first: explicit overrides, ``TRACECTX_*``
environment variables, a TOML file, model defaults.
"""

from __future__ import annotations

import logging
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from tracectx.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tracectx.toml"

# RFC 9110 token characters
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

_ENV_VARS = {
    "TRACECTX_TRACEPARENT_HEADER": ("propagation", "traceparent_header"),
    "TRACECTX_TRACESTATE_HEADER": ("propagation", "tracestate_header"),
    "TRACECTX_CASE_INSENSITIVE_HEADERS": ("propagation", "case_insensitive_headers"),
    "TRACECTX_DEBUG": ("logging", "debug"),
    "TRACECTX_LOG_LEVEL": ("logging", "level"),
}

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class PropagationConfig(BaseModel):
    """Header names and lookup behaviour used when reading and writing carriers."""

    model_config = ConfigDict(extra="forbid")

    traceparent_header: str = "traceparent"
    tracestate_header: str = "tracestate"
    case_insensitive_headers: bool = True

    @field_validator("traceparent_header", "tracestate_header")
    @classmethod
    def _check_header_name(cls, value: str) -> str:
        if not _HEADER_NAME_RE.fullmatch(value):
            raise ValueError(f"invalid header name: {value!r}")
        return value


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    debug: bool = False
    level: Optional[str] = None

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(_LOG_LEVELS)}")
        return value


class TraceContextConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    propagation: PropagationConfig = Field(default_factory=PropagationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_distinct_headers(self) -> "TraceContextConfig":
        propagation = self.propagation
        if propagation.traceparent_header.lower() == propagation.tracestate_header.lower():
            raise ValueError("traceparent_header and tracestate_header must differ")
        return self


def find_config_file() -> Optional[str]:
    """Look for tracectx.toml in the working directory, then the home directory."""
    for candidate in (Path.cwd() / CONFIG_FILE_NAME, Path.home() / CONFIG_FILE_NAME):
        if candidate.is_file():
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Read a TOML config file into a nested dict.

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigError: if the file cannot be parsed
    """
    file_path = Path(path)
    if not file_path.is_file():
        return {}
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError("Invalid TOML config file", {"path": path, "error": e}) from e


def _load_env_config() -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for env_var, (section, key) in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is not None:
            data.setdefault(section, {})[key] = value
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> TraceContextConfig:
    """
    Build a validated config from file, environment and overrides.

    Args:
        config_file: Explicit TOML path; discovered with find_config_file() if omitted
        overrides: Nested dict taking precedence over every other source

    Raises:
        ConfigError: if a source cannot be read or the merged values are invalid
    """
    path = config_file or find_config_file()
    data = load_toml_config(path) if path else {}
    data = _merge(data, _load_env_config())
    data = _merge(data, overrides or {})
    try:
        return TraceContextConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError("Invalid configuration", {"errors": e.error_count()}) from e


def validate_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[bool, str, Optional[TraceContextConfig]]:
    """Like load_config(), but reports failure instead of raising."""
    try:
        config = load_config(config_file=config_file, overrides=overrides)
    except ConfigError as e:
        cause = e.__cause__
        return False, str(cause) if cause is not None else str(e), None
    return True, "Configuration is valid", config


def configure_logging(config: TraceContextConfig) -> None:
    """Apply the logging section to the ``tracectx`` logger hierarchy."""
    package_logger = logging.getLogger("tracectx")
    if config.logging.debug:
        package_logger.setLevel(logging.DEBUG)
    elif config.logging.level:
        package_logger.setLevel(config.logging.level)


_config: Optional[TraceContextConfig] = None


def get_config() -> TraceContextConfig:
    """
    Return the process-wide config, loading it on first use.

    A config file or environment that fails to load is reported and
    replaced by the defaults, so header handling never fails on it.
    """
    global _config
    if _config is None:
        try:
            _config = load_config()
        except ConfigError as e:
            logger.warning("Ignoring invalid tracectx configuration, using defaults: %s", e)
            _config = TraceContextConfig()
        configure_logging(_config)
    return _config


def set_config(config: TraceContextConfig) -> None:
    global _config
    _config = config
    configure_logging(config)


def reset_config() -> None:
    global _config
    _config = None

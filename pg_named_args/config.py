"""Process-wide configuration.

Settings can be built directly, derived with :func:`dataclasses.replace`, or
loaded from ``PG_NAMED_ARGS_*`` environment variables.
"""

import os
import threading
from dataclasses import dataclass
from typing import Final, Optional

from pg_named_args.exceptions import ImproperConfigurationError
from pg_named_args.utils.logging import LOG_FORMATS, LOG_LEVELS, get_logger

__all__ = (
    "ENV_PREFIX",
    "NamedArgsConfig",
    "get_config",
    "load_config_from_env",
    "reset_config",
    "set_config",
)

logger = get_logger("pg_named_args.config")

ENV_PREFIX: Final = "PG_NAMED_ARGS_"


@dataclass(frozen=True)
class NamedArgsConfig:
    """Settings for template processing.

    Attributes:
        enable_caching: Cache scan results per template text.
        max_cache_size: Number of scanned templates kept in the cache.
        allow_extra_fields: Accept record fields that no marker refers to.
        log_level: Level for the ``pg_named_args`` logger when configured by the CLI.
        log_format: ``"simple"`` text lines or ``"structured"`` JSON lines.
    """

    enable_caching: bool = True
    max_cache_size: int = 512
    allow_extra_fields: bool = True
    log_level: str = "WARNING"
    log_format: str = "simple"

    def validate(self) -> "list[str]":
        """Return every problem with this configuration (empty if valid)."""
        errors = []
        if self.max_cache_size < 0:
            errors.append(f"max_cache_size must be >= 0, got {self.max_cache_size}")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {list(LOG_LEVELS)}, got {self.log_level!r}")
        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {list(LOG_FORMATS)}, got {self.log_format!r}")
        return errors


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on", "enabled")


def _env_int(key: str, default: int, minimum: Optional[int] = None) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        logger.warning("Invalid integer value for %s: %s, using default %d", key, value, default)
        return default
    if minimum is not None and number < minimum:
        logger.warning("Value for %s must be >= %d, got %d, using default %d", key, minimum, number, default)
        return default
    return number


def _env_choice(key: str, choices: "tuple[str, ...]", default: str) -> str:
    value = os.getenv(key)
    if value is None:
        return default
    for choice in choices:
        if choice.lower() == value.strip().lower():
            return choice
    logger.warning("Invalid value for %s: %s, expected one of %s, using default %s", key, value, choices, default)
    return default


def load_config_from_env() -> NamedArgsConfig:
    """Build a configuration from ``PG_NAMED_ARGS_*`` environment variables.

    Unset variables fall back to the defaults of :class:`NamedArgsConfig`.
    Invalid values are logged and replaced by the default, so the result
    always passes :meth:`NamedArgsConfig.validate`.
    """
    defaults = NamedArgsConfig()
    return NamedArgsConfig(
        enable_caching=_env_bool(f"{ENV_PREFIX}ENABLE_CACHING", defaults.enable_caching),
        max_cache_size=_env_int(f"{ENV_PREFIX}MAX_CACHE_SIZE", defaults.max_cache_size, minimum=0),
        allow_extra_fields=_env_bool(f"{ENV_PREFIX}ALLOW_EXTRA_FIELDS", defaults.allow_extra_fields),
        log_level=_env_choice(f"{ENV_PREFIX}LOG_LEVEL", LOG_LEVELS, defaults.log_level),
        log_format=_env_choice(f"{ENV_PREFIX}LOG_FORMAT", LOG_FORMATS, defaults.log_format),
    )


_lock = threading.Lock()
_config: Optional[NamedArgsConfig] = None


def get_config() -> NamedArgsConfig:
    """Return the process-wide configuration, loading it from the environment on first use.

    Raises:
        ImproperConfigurationError: If the loaded configuration fails validation.
    """
    global _config
    with _lock:
        if _config is None:
            config = load_config_from_env()
            if errors := config.validate():
                raise ImproperConfigurationError(detail="; ".join(errors))
            _config = config
        return _config


def set_config(config: NamedArgsConfig) -> None:
    """Replace the process-wide configuration.

    Raises:
        ImproperConfigurationError: If ``config`` fails validation.
    """
    global _config
    if errors := config.validate():
        raise ImproperConfigurationError(detail="; ".join(errors))
    with _lock:
        _config = config
    logger.info("Global configuration updated")


def reset_config() -> None:
    """Forget the process-wide configuration so it is reloaded on next access."""
    global _config
    with _lock:
        _config = None

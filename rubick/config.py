"""Environment-variable configuration loading.

Every setting is read from a ``RUBICK_*`` variable. Numeric values are
clamped to their allowed range; malformed values raise ``ValueError``.
"""

from __future__ import annotations

import os

from rubick.models.config import ApiConfig, LogConfig, NotificationConfig, RubickConfig

_ENV_PREFIX = "RUBICK_"

_VALID_LOG_LEVELS: frozenset[str] = frozenset({"debug", "info", "warning", "error"})
_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSY: frozenset[str] = frozenset({"0", "false", "no", "off", ""})

_API_TIMEOUT_MIN, _API_TIMEOUT_MAX = 1, 120
_WEBHOOK_TIMEOUT_MIN, _WEBHOOK_TIMEOUT_MAX = 1, 60


def load_config() -> RubickConfig:
    """Build a ``RubickConfig`` from the current environment.

    Raises:
        ValueError: if a variable holds a value that cannot be interpreted.
    """
    defaults = RubickConfig()

    api = ApiConfig(
        url=parse_api_url(_env("API_URL", defaults.api.url)),
        timeout_seconds=_clamp(
            _parse_int("API_TIMEOUT", defaults.api.timeout_seconds),
            _API_TIMEOUT_MIN,
            _API_TIMEOUT_MAX,
        ),
        token=_env("API_TOKEN", defaults.api.token),
    )
    log = LogConfig(level=_parse_log_level(_env("LOG_LEVEL", defaults.log.level)))
    notifications = NotificationConfig(
        log_enabled=_parse_bool("NOTIFY_LOG_ENABLED", defaults.notifications.log_enabled),
        webhook_url=_env("NOTIFY_WEBHOOK_URL", defaults.notifications.webhook_url),
        webhook_timeout_seconds=_clamp(
            _parse_int("NOTIFY_WEBHOOK_TIMEOUT", defaults.notifications.webhook_timeout_seconds),
            _WEBHOOK_TIMEOUT_MIN,
            _WEBHOOK_TIMEOUT_MAX,
        ),
    )
    return RubickConfig(api=api, log=log, notifications=notifications)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _env(name: str, default: str) -> str:
    return os.environ.get(_ENV_PREFIX + name, default).strip()


def _parse_int(name: str, default: int) -> int:
    raw = os.environ.get(_ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as err:
        raise ValueError(f"Invalid integer for {_ENV_PREFIX}{name}: {raw!r}") from err


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(_ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"Invalid boolean for {_ENV_PREFIX}{name}: {raw!r}")


def _parse_log_level(value: str) -> str:
    level = value.lower()
    if level not in _VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level {value!r}; expected one of {sorted(_VALID_LOG_LEVELS)}")
    return level


def parse_api_url(value: str) -> str:
    """Validate a backend base URL and strip its trailing slash.

    Raises:
        ValueError: if *value* is not an http(s) URL.
    """
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"Invalid API URL {value!r}; must start with http:// or https://")
    return value.rstrip("/")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))

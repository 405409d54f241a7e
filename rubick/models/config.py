"""Configuration data structures, populated by ``rubick.config.load_config``."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ApiConfig:
    """Backend REST API connection settings."""

    url: str = "http://localhost:8080"
    timeout_seconds: int = 30
    token: str = ""


@dataclass
class LogConfig:
    level: str = "info"


@dataclass
class NotificationConfig:
    """Where load diagnostics are delivered."""

    log_enabled: bool = True
    webhook_url: str = ""
    webhook_timeout_seconds: int = 10


@dataclass
class RubickConfig:
    """Top-level console configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    log: LogConfig = field(default_factory=LogConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)

"""Configuration management for kv-monitor."""

from kv_monitor.config.models import (
    LoggingConfig,
    MailConfig,
    MonitorConfig,
    SchedulerConfig,
    TelemetryConfig,
)
from kv_monitor.config.settings import RedisSettings, Settings, SmtpSettings

__all__ = [
    "LoggingConfig",
    "MailConfig",
    "MonitorConfig",
    "SchedulerConfig",
    "TelemetryConfig",
    "RedisSettings",
    "Settings",
    "SmtpSettings",
]

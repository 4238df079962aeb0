"""Environment settings: connection targets and secrets kept out of YAML."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Monitor datastore connection."""
    url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    key_prefix: str = Field(default="_kvmonitor", validation_alias="REDIS_KEY_PREFIX")
    max_connections: int = Field(default=10, ge=1, validation_alias="REDIS_MAX_CONNECTIONS")


class SmtpSettings(BaseSettings):
    """SMTP authentication; anonymous relay when no username is set."""
    username: str = Field(default="", validation_alias="SMTP_USERNAME")
    password: SecretStr = Field(default=SecretStr(""), validation_alias="SMTP_PASSWORD")
    starttls: bool = Field(default=False, validation_alias="SMTP_STARTTLS")


class Settings(BaseSettings):
    """Process-level settings read from the environment and ``.env``."""
    config_file: str = Field(default="config/kv-monitor.yaml", validation_alias="KV_MONITOR_CONFIG")
    log_level: Optional[str] = Field(default=None, validation_alias="KV_MONITOR_LOG_LEVEL")

    redis: RedisSettings = Field(default_factory=RedisSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

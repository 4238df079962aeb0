"""Configuration models for kv-monitor."""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class SchedulerConfig(BaseModel):
    """Configuration for the collection cycle."""

    interval_seconds: int = Field(60, ge=1, description="Seconds between cycles")
    max_concurrency: int = Field(4, ge=1, description="Clusters processed in parallel")
    fetch_timeout_seconds: float = Field(10.0, gt=0, description="Timeout of every collaborator call")
    collect_max_nodes: int = Field(100, ge=1, description="Max nodes sampled per cluster and cycle")
    slow_log_max_count: int = Field(1000, ge=1, description="Slow logs retained per cluster")
    slow_log_fetch_count: int = Field(128, ge=1, description="Slow log entries read per node")


class MailConfig(BaseModel):
    """Configuration for alert mail delivery."""

    host: str = Field("localhost", description="SMTP host")
    port: int = Field(25, ge=1, le=65535, description="SMTP port")
    from_address: str = Field("kv-monitor@localhost", description="Default sender")
    timeout_seconds: float = Field(10.0, gt=0, description="SMTP socket timeout")
    retry_attempts: int = Field(3, ge=1, description="Delivery attempts before giving up")
    subject_prefix: str = Field("[kv-monitor]", description="Prefix of alert subjects")


class TelemetryConfig(BaseModel):
    """Configuration for the per-node metrics fanout."""

    enabled: bool = Field(True, description="Publish node metrics every cycle")
    backend: Literal["log", "prometheus"] = Field("log", description="Telemetry sink")
    tag: str = Field("kvmonitor.node", description="Tag attached to every record")
    fields: List[str] = Field(
        default_factory=lambda: [
            "used_memory",
            "connected_clients",
            "instantaneous_ops_per_sec",
        ],
        description="Node metric keys forwarded to the sink",
    )
    prometheus_port: int = Field(9121, ge=1, le=65535, description="Exporter port")

    @field_validator("fields")
    @classmethod
    def ensure_unique_fields(cls, v: List[str]) -> List[str]:
        """Drop duplicate keys while preserving order."""
        return list(dict.fromkeys(v))


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field("INFO", description="Log level")
    format: str = Field("json", description="Log format (json or text)")
    file_path: Optional[Path] = Field(None, description="Log file path")
    notify_file_path: Optional[Path] = Field(None, description="Extra file receiving NOTIFY lines")


class MonitorConfig(BaseModel):
    """Main monitor configuration."""

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> MonitorConfig:
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, indent=2)

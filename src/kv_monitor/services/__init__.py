"""Collaborator interfaces and their default adapters."""

from kv_monitor.services.protocols import (
    AlertSink,
    ClusterRegistry,
    HistoryStore,
    NodeMetricsSource,
    TelemetrySink,
)
from kv_monitor.services.alerts import SmtpAlertSink, WebhookAlertSink
from kv_monitor.services.datastore import RedisDatastore
from kv_monitor.services.node_client import RedisNodeClient
from kv_monitor.services.registry import RedisClusterRegistry

__all__ = [
    "AlertSink",
    "ClusterRegistry",
    "HistoryStore",
    "NodeMetricsSource",
    "TelemetrySink",
    "SmtpAlertSink",
    "WebhookAlertSink",
    "RedisDatastore",
    "RedisNodeClient",
    "RedisClusterRegistry",
]

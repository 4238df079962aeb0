"""Exception types raised by the monitoring engine."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for kv-monitor errors."""


class InvalidThresholdError(MonitorError):
    """Raised when a NUMBER-typed comparison receives a non-decimal value."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Value {value!r} is not a decimal number")


class MissingNodeMetricsError(MonitorError):
    """Raised when a node_info rule is evaluated without node metrics."""

    def __init__(self, metrics_name: str) -> None:
        self.metrics_name = metrics_name
        super().__init__(
            f"Rule on node metric {metrics_name!r} requires node metrics, none supplied"
        )


class ClusterNotFoundError(MonitorError):
    """Raised when a cluster is registered but its definition is missing."""

    def __init__(self, cluster_name: str) -> None:
        self.cluster_name = cluster_name
        super().__init__(f"Cluster {cluster_name!r} does not exist")


class DeliveryError(MonitorError):
    """Raised by alert sinks when a notification cannot be delivered."""

    def __init__(self, channel: str, reason: str) -> None:
        self.channel = channel
        self.reason = reason
        super().__init__(f"Delivery via {channel} failed: {reason}")

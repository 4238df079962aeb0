"""Telemetry sinks receiving per-node metric records."""

from __future__ import annotations

import re
from typing import Dict

import structlog
from prometheus_client import CollectorRegistry, Gauge

from kv_monitor.schemas import ClusterNode

TELEMETRY_LOGGER = "kv_monitor.telemetry"

_INVALID_METRIC_CHARS = re.compile(r"[^a-zA-Z0-9_]")


class LogTelemetrySink:
    """Writes each record as one structured log event named after the tag.

    With JSON logging enabled this yields one line per node that a log
    shipper (fluentd, vector) can route by tag.
    """

    def __init__(self, logger_name: str = TELEMETRY_LOGGER) -> None:
        self._logger = structlog.get_logger(logger_name)

    async def emit(self, tag: str, node: ClusterNode, metrics: Dict[str, str]) -> None:
        self._logger.info(
            tag,
            node_id=node.node_id,
            host_and_port=node.host_and_port,
            metrics=metrics,
        )


class PrometheusTelemetrySink:
    """Mirrors numeric node metrics into labelled Prometheus gauges."""

    def __init__(self, registry: CollectorRegistry | None = None, namespace: str = "kvmonitor_node") -> None:
        self.registry = registry or CollectorRegistry(auto_describe=True)
        self.namespace = namespace
        self._gauges: Dict[str, Gauge] = {}

    def _gauge(self, metric: str) -> Gauge:
        name = f"{self.namespace}_{_INVALID_METRIC_CHARS.sub('_', metric)}"
        gauge = self._gauges.get(name)
        if gauge is None:
            gauge = Gauge(
                name,
                f"Node metric {metric}",
                ["tag", "cluster", "node_id", "host_and_port"],
                registry=self.registry,
            )
            self._gauges[name] = gauge
        return gauge

    async def emit(self, tag: str, node: ClusterNode, metrics: Dict[str, str]) -> None:
        cluster = metrics.get("cluster_name", "")
        for metric, value in metrics.items():
            try:
                number = float(value)
            except (TypeError, ValueError):
                continue
            self._gauge(metric).labels(
                tag=tag,
                cluster=cluster,
                node_id=node.node_id,
                host_and_port=node.host_and_port,
            ).set(number)

    def value(self, metric: str, **labels: str) -> float | None:
        """Current gauge value, mainly for diagnostics."""
        name = f"{self.namespace}_{_INVALID_METRIC_CHARS.sub('_', metric)}"
        return self.registry.get_sample_value(name, labels)

"""Forwarding of selected node metrics to a telemetry sink."""

from __future__ import annotations

import asyncio
from typing import Dict, Sequence

import structlog

from kv_monitor.schemas import Cluster, ClusterNode, NodeMetrics
from kv_monitor.services.protocols import TelemetrySink
from kv_monitor.utils.retry import with_timeout

logger = structlog.get_logger(__name__)


class MetricsFanout:
    """Publishes one record per node with the configured metric keys."""

    def __init__(
        self,
        sink: TelemetrySink,
        tag: str,
        fields: Sequence[str],
        timeout: float | None = 10.0,
    ) -> None:
        self.sink = sink
        self.tag = tag
        self.fields = list(fields)
        self.timeout = timeout

    def build_record(self, cluster: Cluster, metrics: Dict[str, str]) -> Dict[str, str]:
        """Select the configured keys present in ``metrics``."""
        record = {"cluster_name": cluster.cluster_name}
        for field in self.fields:
            if field in metrics:
                record[field] = metrics[field]
        return record

    async def publish(self, cluster: Cluster, node_metrics: NodeMetrics) -> int:
        """Emit every node's record; returns how many were delivered.

        A failing or slow node is logged and skipped, the others are
        still emitted.
        """
        nodes = list(node_metrics)
        results = await asyncio.gather(
            *(self._emit(cluster, node, node_metrics[node]) for node in nodes),
            return_exceptions=True,
        )

        delivered = 0
        for node, result in zip(nodes, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Telemetry emit failed",
                    cluster=cluster.cluster_name,
                    node=str(node),
                    error=str(result),
                )
            else:
                delivered += 1
        return delivered

    async def _emit(self, cluster: Cluster, node: ClusterNode, metrics: Dict[str, str]) -> None:
        record = self.build_record(cluster, metrics)
        await with_timeout(
            self.sink.emit(self.tag, node, record),
            self.timeout,
            f"telemetry emit for {node}",
        )

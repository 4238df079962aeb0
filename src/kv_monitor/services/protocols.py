"""Collaborator interfaces consumed by the monitoring engine.

The scheduler never talks to a datastore, a node or a mail server
directly; it is handed implementations of these protocols. The Redis,
SMTP, webhook and telemetry adapters in this package are the defaults
wired by the CLI, tests supply in-memory fakes.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence, Set, runtime_checkable

from kv_monitor.schemas import Cluster, ClusterNode, NodeMetrics, Notice, PagerData, SlowLog


@runtime_checkable
class ClusterRegistry(Protocol):
    """Source of the monitored clusters and their stored configuration."""

    async def list_cluster_names(self) -> Set[str]:
        ...

    async def get_notice(self, name: str) -> Optional[Notice]:
        """Alerting configuration of ``name``, None when none is stored."""
        ...

    async def get_cluster(self, name: str) -> Cluster:
        """Current topology and cluster-wide info of ``name``."""
        ...

    async def get_slow_log_history(self, name: str, offset: int, limit: int) -> PagerData[SlowLog]:
        """Persisted slow logs of ``name``, most recent first."""
        ...


@runtime_checkable
class NodeMetricsSource(Protocol):
    """Reads statistics from cluster nodes."""

    async def fetch(self, nodes: Sequence[ClusterNode]) -> NodeMetrics:
        """Static info (``INFO`` fields) of every reachable node."""
        ...

    async def fetch_slow_logs(self, nodes: Sequence[ClusterNode]) -> List[SlowLog]:
        """Slow log entries recorded since the previous call."""
        ...


@runtime_checkable
class AlertSink(Protocol):
    """Delivery channel for alert notifications."""

    async def notify(self, recipients: Sequence[str], subject: str, body: str) -> None:
        ...


@runtime_checkable
class TelemetrySink(Protocol):
    """External sink receiving one metrics record per node."""

    async def emit(self, tag: str, node: ClusterNode, metrics: Dict[str, str]) -> None:
        ...


@runtime_checkable
class HistoryStore(Protocol):
    """List storage with per-key atomic prepend and trim."""

    async def prepend(self, key: str, record: str) -> None:
        ...

    async def trim(self, key: str, max_count: int) -> None:
        ...

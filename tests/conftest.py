"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Set

import pytest

from kv_monitor.config import MailConfig, SchedulerConfig
from kv_monitor.monitoring import MetricsFanout, MonitoringScheduler, Notifier, SlowLogRetention
from kv_monitor.schemas import (
    Cluster,
    ClusterNode,
    NodeMetrics,
    Notice,
    NoticeItem,
    PagerData,
    SlowLog,
)
from kv_monitor.utils.logging import setup_logging
from kv_monitor.utils.metrics import SchedulerMetrics

NODE_1 = ClusterNode(node_id="nodeId1", host_and_port="localhost:10000")
NODE_2 = ClusterNode(node_id="nodeId2", host_and_port="localhost:10001")


def node_stats() -> Dict[str, str]:
    return {
        "use_memory": "200000000",
        "connected_clients": "1000",
        "instantaneous_ops_per_sec": "1000",
    }


def make_item(
    metrics_name: str,
    metrics_type: str,
    value: str,
    value_type: str = "number",
    operator: str = "eq",
) -> NoticeItem:
    return NoticeItem(
        metrics_name=metrics_name,
        metrics_type=metrics_type,
        operator=operator,
        value=value,
        value_type=value_type,
    )


class FakeRegistry:
    """In-memory ClusterRegistry."""

    def __init__(
        self,
        clusters: Dict[str, Cluster],
        notices: Optional[Dict[str, Notice]] = None,
        failing: Sequence[str] = (),
        delays: Optional[Dict[str, float]] = None,
        store: Optional["InMemoryHistoryStore"] = None,
    ) -> None:
        self.clusters = clusters
        self.notices = notices or {}
        self.failing = set(failing)
        self.delays = delays or {}
        self.store = store

    async def list_cluster_names(self) -> Set[str]:
        return set(self.clusters)

    async def get_notice(self, name: str) -> Optional[Notice]:
        return self.notices.get(name)

    async def get_cluster(self, name: str) -> Cluster:
        if name in self.delays:
            await asyncio.sleep(self.delays[name])
        if name in self.failing:
            raise ConnectionError(f"{name} is unreachable")
        return self.clusters[name]

    async def get_slow_log_history(self, name: str, offset: int, limit: int) -> PagerData[SlowLog]:
        key = f"_kvmonitor.cluster.{name}.slowLog"
        items = self.store.lists.get(key, []) if self.store else []
        return PagerData[SlowLog](
            page=offset // limit,
            per_page=limit,
            total=len(items),
            items=[SlowLog.model_validate_json(raw) for raw in items[offset:offset + limit]],
        )


class FakeMetricsSource:
    """NodeMetricsSource answering from canned per-node data."""

    def __init__(
        self,
        metrics: Optional[Dict[str, Dict[str, str]]] = None,
        slow_logs: Optional[Dict[str, List[SlowLog]]] = None,
    ) -> None:
        self.metrics = metrics or {}
        self.slow_logs = slow_logs or {}
        self.fetched: List[List[ClusterNode]] = []

    async def fetch(self, nodes: Sequence[ClusterNode]) -> NodeMetrics:
        self.fetched.append(list(nodes))
        return {
            node: dict(self.metrics.get(node.host_and_port, node_stats()))
            for node in nodes
        }

    async def fetch_slow_logs(self, nodes: Sequence[ClusterNode]) -> List[SlowLog]:
        records: List[SlowLog] = []
        for node in nodes:
            records.extend(self.slow_logs.get(node.host_and_port, []))
        return records


class RecordingAlertSink:
    """AlertSink keeping every notification."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[tuple] = []

    async def notify(self, recipients: Sequence[str], subject: str, body: str) -> None:
        if self.fail:
            raise ConnectionError("smtp relay down")
        self.sent.append((list(recipients), subject, body))


class RecordingTelemetrySink:
    """TelemetrySink keeping every record, optionally failing for some nodes."""

    def __init__(self, failing_nodes: Sequence[str] = ()) -> None:
        self.failing_nodes = set(failing_nodes)
        self.records: List[tuple] = []

    async def emit(self, tag: str, node: ClusterNode, metrics: Dict[str, str]) -> None:
        if node.node_id in self.failing_nodes:
            raise ConnectionError(f"sink rejected {node.node_id}")
        self.records.append((tag, node, metrics))


class InMemoryHistoryStore:
    """HistoryStore over plain lists, head first."""

    def __init__(self) -> None:
        self.lists: Dict[str, List[str]] = {}
        self.calls: List[tuple] = []
        self.fail = False

    async def prepend(self, key: str, record: str) -> None:
        if self.fail:
            raise ConnectionError("datastore down")
        self.calls.append(("prepend", key, record))
        self.lists.setdefault(key, []).insert(0, record)

    async def trim(self, key: str, max_count: int) -> None:
        self.calls.append(("trim", key, max_count))
        self.lists[key] = self.lists.get(key, [])[:max_count]


@pytest.fixture(autouse=True)
def setup_test_logging() -> None:
    """Setup logging for tests."""
    setup_logging(level="DEBUG", format_type="text")


@pytest.fixture
def sample_cluster() -> Cluster:
    return Cluster(
        cluster_name="cluster1",
        status="ok",
        info={
            "cluster_state": "ok",
            "cluster_current_epoch": "1",
            "cluster_known_nodes": "1",
        },
        nodes=[NODE_1, NODE_2],
    )


@pytest.fixture
def sample_node_metrics() -> NodeMetrics:
    return {NODE_1: node_stats(), NODE_2: node_stats()}


@pytest.fixture
def sample_notice() -> Notice:
    """The six rules of the reference scenario; two of them never match."""
    return Notice(
        mail={"to": "ops@example.com, dba@example.com"},
        items=[
            make_item("cluster_state", "cluster_info", "ok", value_type="string"),
            make_item("cluster_current_epoch", "cluster_info", "1"),
            make_item("cluster_known_nodes", "cluster_info", "2"),
            make_item("use_memory", "node_info", "200000000"),
            make_item("connected_clients", "node_info", "1000"),
            make_item("instantaneous_ops_per_sec", "node_info", "2000"),
        ],
    )


@pytest.fixture
def history_store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def alert_sink() -> RecordingAlertSink:
    return RecordingAlertSink()


@pytest.fixture
def telemetry_sink() -> RecordingTelemetrySink:
    return RecordingTelemetrySink()


@pytest.fixture
def scheduler_config() -> SchedulerConfig:
    return SchedulerConfig(
        interval_seconds=1,
        max_concurrency=2,
        fetch_timeout_seconds=0.5,
        collect_max_nodes=100,
        slow_log_max_count=5,
    )


@pytest.fixture
def build_scheduler(scheduler_config, alert_sink, telemetry_sink, history_store):
    """Factory wiring a scheduler around fakes."""

    def _build(
        registry: FakeRegistry,
        metrics_source: Optional[FakeMetricsSource] = None,
        config: Optional[SchedulerConfig] = None,
        mail_sink=None,
    ) -> MonitoringScheduler:
        return MonitoringScheduler(
            config=config or scheduler_config,
            registry=registry,
            metrics_source=metrics_source or FakeMetricsSource(),
            notifier=Notifier(
                mail_sink or alert_sink,
                mail_config=MailConfig(retry_attempts=1),
            ),
            fanout=MetricsFanout(
                telemetry_sink,
                tag="tag",
                fields=["use_memory", "connected_clients", "instantaneous_ops_per_sec"],
                timeout=0.5,
            ),
            slow_logs=SlowLogRetention(
                history_store,
                max_count=(config or scheduler_config).slow_log_max_count,
            ),
            metrics=SchedulerMetrics(),
        )

    return _build

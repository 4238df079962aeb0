"""Periodic collection, alerting and slow log retention across clusters."""

from __future__ import annotations

import asyncio
import functools
import signal
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import List, Optional

import structlog

from kv_monitor.config import SchedulerConfig
from kv_monitor.monitoring.fanout import MetricsFanout
from kv_monitor.monitoring.notifier import Notifier
from kv_monitor.monitoring.rules import RuleEvaluator, summarize_jobs
from kv_monitor.monitoring.slowlog import SlowLogRetention, latest_saved, newer_than
from kv_monitor.schemas import Cluster, ClusterNode
from kv_monitor.services.protocols import ClusterRegistry, NodeMetricsSource
from kv_monitor.utils.logging import NOTIFY_LOGGER
from kv_monitor.utils.metrics import SchedulerMetrics
from kv_monitor.utils.retry import with_timeout

logger = structlog.get_logger(__name__)
notify_logger = structlog.get_logger(NOTIFY_LOGGER)


@dataclass
class ClusterReport:
    """Outcome of one cluster's iteration."""
    cluster_name: str
    ok: bool = True
    jobs: int = 0
    notified: bool = False
    telemetry_records: int = 0
    slow_logs_saved: int = 0
    sampled_nodes: int = 0
    error: Optional[str] = None


@dataclass
class CycleReport:
    """Outcome of a whole collection cycle."""
    started_at: datetime
    duration: float = 0.0
    clusters: List[ClusterReport] = field(default_factory=list)

    @property
    def failed(self) -> List[ClusterReport]:
        return [c for c in self.clusters if not c.ok]


class MonitoringScheduler:
    """Runs the monitoring pipeline for every registered cluster.

    For each cluster, sequentially: load the Notice, read the topology,
    fetch node metrics, evaluate rules, notify, publish telemetry and
    merge slow logs newer than the persisted head. Clusters run
    concurrently up to ``config.max_concurrency``; an error in one cluster
    is logged and the others carry on.

    Example:
        scheduler = MonitoringScheduler(
            config=monitor_config.scheduler,
            registry=registry,
            metrics_source=node_client,
            notifier=Notifier(SmtpAlertSink(monitor_config.mail)),
            fanout=MetricsFanout(LogTelemetrySink(), "kvmonitor.node", fields),
            slow_logs=SlowLogRetention(datastore, max_count=1000),
        )
        await scheduler.run_forever()
    """

    def __init__(
        self,
        config: SchedulerConfig,
        registry: ClusterRegistry,
        metrics_source: NodeMetricsSource,
        notifier: Notifier,
        fanout: Optional[MetricsFanout],
        slow_logs: SlowLogRetention,
        evaluator: Optional[RuleEvaluator] = None,
        metrics: Optional[SchedulerMetrics] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.metrics_source = metrics_source
        self.notifier = notifier
        self.fanout = fanout
        self.slow_logs = slow_logs
        self.evaluator = evaluator or RuleEvaluator()
        self.metrics = metrics or SchedulerMetrics()
        self._shutdown = asyncio.Event()
        self._last_report: Optional[CycleReport] = None

    @property
    def last_report(self) -> Optional[CycleReport]:
        return self._last_report

    async def run_cycle(self) -> CycleReport:
        """Process every registered cluster once."""
        report = CycleReport(started_at=datetime.now(UTC))
        start = time.monotonic()

        try:
            names = await self._call(self.registry.list_cluster_names(), "list clusters")
        except Exception as e:
            logger.error("Failed to list clusters", error=str(e))
            names = set()

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def bounded(name: str) -> ClusterReport:
            async with semaphore:
                return await self.process_cluster(name)

        report.clusters = list(await asyncio.gather(*(bounded(name) for name in sorted(names))))
        report.duration = time.monotonic() - start
        self.metrics.record_cycle(report.duration)
        self._last_report = report

        logger.info(
            "Cycle complete",
            clusters=len(report.clusters),
            failed=len(report.failed),
            duration=round(report.duration, 3),
        )
        return report

    async def process_cluster(self, name: str) -> ClusterReport:
        """Run the full pipeline for one cluster, never raising."""
        report = ClusterReport(cluster_name=name)
        try:
            await self._process(name, report)
        except Exception as e:
            report.ok = False
            report.error = f"{type(e).__name__}: {e}"
            logger.exception("Cluster processing failed", cluster=name, error=str(e))
        self.metrics.record_cluster(name, report.ok, report.jobs, report.slow_logs_saved)
        return report

    async def _process(self, name: str, report: ClusterReport) -> None:
        notice = await self._call(self.registry.get_notice(name), f"notice of {name}")
        cluster = await self._call(self.registry.get_cluster(name), f"topology of {name}")
        if not cluster.cluster_name:
            cluster = cluster.model_copy(update={"cluster_name": name})

        nodes = self._sample_nodes(cluster)
        report.sampled_nodes = len(nodes)
        node_metrics = await self._call(self.metrics_source.fetch(nodes), f"node metrics of {name}")

        jobs = self.evaluator.evaluate(notice, cluster, node_metrics)
        report.jobs = len(jobs)
        if jobs and notice is not None:
            notify_logger.info("NOTIFY", cluster=name, jobs=summarize_jobs(jobs))
            delivered = await self.notifier.notify(notice, cluster, jobs)
            report.notified = delivered > 0
            if report.notified:
                self.metrics.record_notification(name)

        if self.fanout is not None:
            report.telemetry_records = await self.fanout.publish(cluster, node_metrics)

        slow_logs = await self._call(
            self.metrics_source.fetch_slow_logs(nodes), f"slow logs of {name}"
        )
        watermark = await self._call(
            latest_saved(self.registry, name), f"slow log history of {name}"
        )
        report.slow_logs_saved = await self._call(
            self.slow_logs.merge(name, newer_than(slow_logs, watermark)),
            f"slow log merge of {name}",
        )

    def _sample_nodes(self, cluster: Cluster) -> List[ClusterNode]:
        limit = self.config.collect_max_nodes
        if len(cluster.nodes) > limit:
            logger.warning(
                "Cluster partially sampled",
                cluster=cluster.cluster_name,
                nodes=len(cluster.nodes),
                sampled=limit,
            )
        return list(cluster.nodes[:limit])

    async def _call(self, awaitable, operation: str):
        return await with_timeout(awaitable, self.config.fetch_timeout_seconds, operation)

    async def run_forever(self) -> None:
        """Run cycles every ``interval_seconds`` until stopped.

        SIGINT and SIGTERM stop the loop after the current cycle.
        """
        loop = asyncio.get_running_loop()
        installed: List[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))
            except (NotImplementedError, RuntimeError):
                # Not supported off the main thread or on some platforms
                continue
            installed.append(sig)

        logger.info("Monitoring scheduler starting", interval=self.config.interval_seconds)
        try:
            while not self._shutdown.is_set():
                await self.run_cycle()
                try:
                    await asyncio.wait_for(
                        self._shutdown.wait(),
                        timeout=self.config.interval_seconds,
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
        logger.info("Monitoring scheduler stopped")

    def stop(self) -> None:
        """Request the loop to stop after the current cycle."""
        self._shutdown.set()

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received signal, shutting down", signal=sig.name)
        self.stop()

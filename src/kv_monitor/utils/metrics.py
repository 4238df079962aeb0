"""Prometheus metrics describing the scheduler itself."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


class SchedulerMetrics:
    """Counters and timings of collection cycles."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry(auto_describe=True)

        self.cycles = Counter(
            "kvmonitor_cycles_total",
            "Number of completed collection cycles",
            registry=self.registry,
        )
        self.cycle_duration = Histogram(
            "kvmonitor_cycle_duration_seconds",
            "Collection cycle duration",
            registry=self.registry,
        )
        self.cluster_failures = Counter(
            "kvmonitor_cluster_failures_total",
            "Cluster iterations aborted by an error",
            ["cluster"],
            registry=self.registry,
        )
        self.notifications = Counter(
            "kvmonitor_notifications_total",
            "Alert notifications dispatched",
            ["cluster"],
            registry=self.registry,
        )
        self.notice_jobs = Gauge(
            "kvmonitor_notice_jobs",
            "Rules matched in the last cycle",
            ["cluster"],
            registry=self.registry,
        )
        self.slow_logs_saved = Counter(
            "kvmonitor_slow_logs_saved_total",
            "Slow log records merged into history",
            ["cluster"],
            registry=self.registry,
        )

    def start_server(self, port: int) -> None:
        """Start the Prometheus HTTP server."""
        start_http_server(port, registry=self.registry)

    def record_cluster(self, cluster: str, ok: bool, jobs: int, slow_logs: int) -> None:
        """Record the outcome of one cluster iteration."""
        if not ok:
            self.cluster_failures.labels(cluster=cluster).inc()
            return
        self.notice_jobs.labels(cluster=cluster).set(jobs)
        if slow_logs:
            self.slow_logs_saved.labels(cluster=cluster).inc(slow_logs)

    def record_notification(self, cluster: str) -> None:
        self.notifications.labels(cluster=cluster).inc()

    def record_cycle(self, duration: float) -> None:
        self.cycles.inc()
        self.cycle_duration.observe(duration)

"""Wiring of the monitoring engine from configuration."""

from __future__ import annotations

from typing import Optional

import structlog
from prometheus_client import CollectorRegistry

from kv_monitor.config import MonitorConfig, Settings
from kv_monitor.monitoring.fanout import MetricsFanout
from kv_monitor.monitoring.notifier import Notifier
from kv_monitor.monitoring.scheduler import CycleReport, MonitoringScheduler
from kv_monitor.monitoring.slowlog import SlowLogRetention, read_history
from kv_monitor.monitoring.telemetry import LogTelemetrySink, PrometheusTelemetrySink
from kv_monitor.schemas import PagerData, SlowLog
from kv_monitor.services import (
    RedisClusterRegistry,
    RedisDatastore,
    RedisNodeClient,
    SmtpAlertSink,
    TelemetrySink,
    WebhookAlertSink,
)
from kv_monitor.utils.metrics import SchedulerMetrics

logger = structlog.get_logger(__name__)


class MonitorOrchestrator:
    """Builds the scheduler and its Redis, SMTP and telemetry adapters."""

    def __init__(
        self,
        config: MonitorConfig,
        settings: Settings,
        datastore: Optional[RedisDatastore] = None,
    ) -> None:
        self.config = config
        self.settings = settings
        self.datastore = datastore or RedisDatastore.from_url(
            settings.redis.url,
            key_prefix=settings.redis.key_prefix,
            max_connections=settings.redis.max_connections,
        )
        self.node_client = RedisNodeClient(
            timeout=config.scheduler.fetch_timeout_seconds,
            slow_log_fetch_count=config.scheduler.slow_log_fetch_count,
        )
        self.registry = RedisClusterRegistry(self.datastore, self.node_client)
        self.metrics_registry = CollectorRegistry(auto_describe=True)
        self.telemetry_sink = self._build_telemetry_sink()
        self.scheduler = MonitoringScheduler(
            config=config.scheduler,
            registry=self.registry,
            metrics_source=self.node_client,
            notifier=Notifier(
                SmtpAlertSink(config.mail, settings.smtp),
                WebhookAlertSink(timeout=config.mail.timeout_seconds),
                mail_config=config.mail,
            ),
            fanout=self._build_fanout(),
            slow_logs=SlowLogRetention(
                self.datastore,
                max_count=config.scheduler.slow_log_max_count,
                key_prefix=settings.redis.key_prefix,
            ),
            metrics=SchedulerMetrics(self.metrics_registry),
        )
        self._initialized = False

    def _build_telemetry_sink(self) -> TelemetrySink:
        if self.config.telemetry.backend == "prometheus":
            return PrometheusTelemetrySink(registry=self.metrics_registry)
        return LogTelemetrySink()

    def _build_fanout(self) -> Optional[MetricsFanout]:
        telemetry = self.config.telemetry
        if not telemetry.enabled:
            return None
        return MetricsFanout(
            self.telemetry_sink,
            tag=telemetry.tag,
            fields=telemetry.fields,
            timeout=self.config.scheduler.fetch_timeout_seconds,
        )

    async def initialize(self) -> None:
        """Check the datastore and start the metrics exporter if configured."""
        logger.info("Initializing monitor", redis=self.settings.redis.url)
        await self.datastore.redis.ping()

        if self.config.telemetry.backend == "prometheus":
            # Scheduler metrics share the exporter with node gauges
            self.scheduler.metrics.start_server(self.config.telemetry.prometheus_port)

        self._initialized = True
        logger.info("Monitor initialized")

    async def run_once(self) -> CycleReport:
        if not self._initialized:
            raise RuntimeError("Monitor not initialized")
        return await self.scheduler.run_cycle()

    async def run_forever(self) -> None:
        if not self._initialized:
            raise RuntimeError("Monitor not initialized")
        await self.scheduler.run_forever()

    async def slow_log_history(self, cluster_name: str, offset: int, limit: int) -> PagerData[SlowLog]:
        return await read_history(self.registry, cluster_name, offset, limit)

    async def shutdown(self) -> None:
        """Stop the scheduler and close the datastore connection."""
        logger.info("Shutting down monitor")
        self.scheduler.stop()
        await self.datastore.close()
        self._initialized = False
        logger.info("Monitor shutdown complete")

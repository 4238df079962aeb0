"""Rule evaluation, notification and the periodic monitoring loop."""

from __future__ import annotations

from kv_monitor.monitoring.comparator import compare_numbers, compare_strings, should_notify
from kv_monitor.monitoring.fanout import MetricsFanout
from kv_monitor.monitoring.notifier import Notifier
from kv_monitor.monitoring.rules import RuleEvaluator
from kv_monitor.monitoring.scheduler import ClusterReport, CycleReport, MonitoringScheduler
from kv_monitor.monitoring.slowlog import SlowLogRetention
from kv_monitor.monitoring.suppression import is_suppressed
from kv_monitor.monitoring.telemetry import LogTelemetrySink, PrometheusTelemetrySink

__all__ = [
    "compare_numbers",
    "compare_strings",
    "should_notify",
    "MetricsFanout",
    "Notifier",
    "RuleEvaluator",
    "ClusterReport",
    "CycleReport",
    "MonitoringScheduler",
    "SlowLogRetention",
    "is_suppressed",
    "LogTelemetrySink",
    "PrometheusTelemetrySink",
]

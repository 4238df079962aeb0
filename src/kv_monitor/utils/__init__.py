"""Utility functions and helpers."""

from kv_monitor.utils.logging import setup_logging, get_logger
from kv_monitor.utils.metrics import SchedulerMetrics
from kv_monitor.utils.retry import retry_async, with_timeout, RetryConfig, RetryError

__all__ = [
    "setup_logging",
    "get_logger",
    "SchedulerMetrics",
    "retry_async",
    "with_timeout",
    "RetryConfig",
    "RetryError",
]

"""kv-monitor - Rule based alerting and slow log retention for Redis clusters."""

__version__ = "0.1.0"

# Configuration
from kv_monitor.config import MonitorConfig, Settings

# Schemas
from kv_monitor.schemas import (
    Cluster,
    ClusterNode,
    Notice,
    NoticeItem,
    NoticeJob,
    SlowLog,
)

# Monitoring
from kv_monitor.monitoring import (
    MetricsFanout,
    MonitoringScheduler,
    Notifier,
    RuleEvaluator,
    SlowLogRetention,
    is_suppressed,
    should_notify,
)

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "MonitorConfig",
    "Settings",
    # Schemas
    "Cluster",
    "ClusterNode",
    "Notice",
    "NoticeItem",
    "NoticeJob",
    "SlowLog",
    # Monitoring
    "MetricsFanout",
    "MonitoringScheduler",
    "Notifier",
    "RuleEvaluator",
    "SlowLogRetention",
    "is_suppressed",
    "should_notify",
]

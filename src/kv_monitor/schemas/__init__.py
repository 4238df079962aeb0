"""Data schemas for clusters, alerting rules and slow logs."""

from kv_monitor.schemas.cluster import Cluster, ClusterNode, NodeMetrics
from kv_monitor.schemas.notice import (
    Notice,
    NoticeHttp,
    NoticeItem,
    NoticeJob,
    NoticeMail,
    NoticeOperator,
    NoticeType,
    NoticeValueType,
    ResultValue,
)
from kv_monitor.schemas.slowlog import PagerData, SlowLog

__all__ = [
    "Cluster",
    "ClusterNode",
    "NodeMetrics",
    "Notice",
    "NoticeHttp",
    "NoticeItem",
    "NoticeJob",
    "NoticeMail",
    "NoticeOperator",
    "NoticeType",
    "NoticeValueType",
    "ResultValue",
    "PagerData",
    "SlowLog",
]

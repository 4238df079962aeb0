"""Evaluation of a cluster's alerting rules."""

from __future__ import annotations

from typing import Dict, List, Optional

import structlog

from kv_monitor.exceptions import InvalidThresholdError, MissingNodeMetricsError
from kv_monitor.monitoring.comparator import should_notify
from kv_monitor.monitoring.suppression import is_suppressed
from kv_monitor.schemas import (
    Cluster,
    NodeMetrics,
    Notice,
    NoticeItem,
    NoticeJob,
    NoticeType,
    ResultValue,
)

logger = structlog.get_logger(__name__)


class RuleEvaluator:
    """Matches NoticeItems against a cluster snapshot.

    A cluster_info rule reads one value from ``cluster.info`` and yields at
    most one result. A node_info rule is checked on every node and collects
    all offending nodes into a single job, so one rule maps to one alert
    however many nodes violate it.
    """

    def evaluate(
        self,
        notice: Optional[Notice],
        cluster: Optional[Cluster],
        node_metrics: Optional[NodeMetrics],
        now: Optional[int] = None,
    ) -> List[NoticeJob]:
        """Return one NoticeJob per matching rule, in configuration order."""
        if notice is None:
            return []
        if is_suppressed(notice, now):
            logger.debug("Notifications suppressed", invalid_end_time=notice.invalid_end_time)
            return []

        jobs: List[NoticeJob] = []
        for item in notice.items:
            if item.metrics_type is NoticeType.CLUSTER_INFO:
                results = self._match_cluster_info(item, cluster)
            else:
                results = self._match_node_info(item, node_metrics)

            if results:
                jobs.append(NoticeJob(item=item, result_values=results))

        return jobs

    def _match_cluster_info(self, item: NoticeItem, cluster: Optional[Cluster]) -> List[ResultValue]:
        info = cluster.info if cluster is not None else {}
        observed = info.get(item.metrics_name)
        if observed is None:
            return []
        if self._matches(item, observed):
            return [ResultValue(value=observed)]
        return []

    def _match_node_info(self, item: NoticeItem, node_metrics: Optional[NodeMetrics]) -> List[ResultValue]:
        if node_metrics is None:
            raise MissingNodeMetricsError(item.metrics_name)

        results: List[ResultValue] = []
        for node, metrics in node_metrics.items():
            observed = metrics.get(item.metrics_name)
            if observed is None:
                continue
            if self._matches(item, observed, node=str(node)):
                results.append(
                    ResultValue(
                        value=observed,
                        node_id=node.node_id,
                        host_and_port=node.host_and_port,
                    )
                )
        return results

    def _matches(self, item: NoticeItem, observed: str, node: Optional[str] = None) -> bool:
        try:
            return should_notify(item.value_type, item.operator, observed, item.value)
        except InvalidThresholdError as e:
            logger.warning(
                "Rule value is not a number, condition treated as unmet",
                metrics_name=item.metrics_name,
                threshold=item.value,
                observed=observed,
                node=node,
                error=str(e),
            )
            return False


def summarize_jobs(jobs: List[NoticeJob]) -> List[Dict[str, object]]:
    """Compact, log-friendly form of NoticeJobs."""
    return [
        {
            "metrics_name": job.item.metrics_name,
            "operator": job.item.operator.value,
            "value": job.item.value,
            "matches": len(job.result_values),
        }
        for job in jobs
    ]

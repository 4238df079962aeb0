"""Rendering and dispatch of alert notifications."""

from __future__ import annotations

import json
from typing import List, Optional

import structlog

from kv_monitor.config import MailConfig
from kv_monitor.schemas import Cluster, Notice, NoticeJob
from kv_monitor.services.protocols import AlertSink
from kv_monitor.utils.retry import RetryConfig, RetryError, retry_async

logger = structlog.get_logger(__name__)


def render_subject(prefix: str, cluster: Cluster) -> str:
    return f"{prefix} Notice of {cluster.cluster_name}".strip()


def render_body(cluster: Cluster, jobs: List[NoticeJob]) -> str:
    """Plain text alert describing each matched rule and its values."""
    lines = [
        f"Cluster: {cluster.cluster_name}",
        f"Status: {cluster.status}",
        "",
        "Matched rules:",
    ]
    for job in jobs:
        item = job.item
        lines.append(
            f"- {item.metrics_name} {item.operator.value} {item.value} "
            f"({item.metrics_type.value}, {item.value_type.value})"
        )
        for result in job.result_values:
            if result.node_id:
                lines.append(f"    {result.node_id} {result.host_and_port} = {result.value}")
            else:
                lines.append(f"    cluster = {result.value}")
    return "\n".join(lines) + "\n"


def render_payload(cluster: Cluster, jobs: List[NoticeJob]) -> str:
    """JSON alert for webhook receivers."""
    return json.dumps(
        {
            "clusterName": cluster.cluster_name,
            "status": cluster.status,
            "jobs": [job.model_dump(mode="json", by_alias=True) for job in jobs],
        }
    )


class Notifier:
    """Sends a cluster's NoticeJobs to the recipients named in its Notice.

    Mail goes to ``notice.mail.to``, the JSON payload to
    ``notice.http.url``. Failed deliveries are logged and reported through
    the return value, never raised.
    """

    def __init__(
        self,
        mail_sink: Optional[AlertSink],
        webhook_sink: Optional[AlertSink] = None,
        mail_config: Optional[MailConfig] = None,
    ) -> None:
        self.mail_sink = mail_sink
        self.webhook_sink = webhook_sink
        self.mail_config = mail_config or MailConfig()
        self.retry = RetryConfig(
            max_attempts=self.mail_config.retry_attempts,
            base_delay=1.0,
            timeout=self.mail_config.timeout_seconds * 2,
        )

    async def notify(self, notice: Notice, cluster: Cluster, jobs: List[NoticeJob]) -> int:
        """Dispatch ``jobs``; returns the number of successful deliveries."""
        if not jobs:
            return 0

        subject = render_subject(self.mail_config.subject_prefix, cluster)
        delivered = 0

        recipients = notice.mail.recipients
        if self.mail_sink is not None and recipients:
            delivered += await self._deliver(
                "mail", self.mail_sink, recipients, subject, render_body(cluster, jobs), cluster
            )

        url = notice.http.url.strip()
        if self.webhook_sink is not None and url:
            delivered += await self._deliver(
                "webhook", self.webhook_sink, [url], subject, render_payload(cluster, jobs), cluster
            )

        return delivered

    async def _deliver(
        self,
        channel: str,
        sink: AlertSink,
        recipients: List[str],
        subject: str,
        body: str,
        cluster: Cluster,
    ) -> int:
        try:
            await retry_async(sink.notify, recipients, subject, body, config=self.retry)
        except RetryError as e:
            logger.error(
                "Alert delivery failed",
                channel=channel,
                cluster=cluster.cluster_name,
                attempts=e.attempts,
                error=str(e.last_exception),
            )
            return 0
        return 1

"""Bounded per-cluster slow log history."""

from __future__ import annotations

from typing import Iterable, List, Optional

import structlog

from kv_monitor.schemas import PagerData, SlowLog
from kv_monitor.services.keys import slow_log_key
from kv_monitor.services.protocols import ClusterRegistry, HistoryStore

logger = structlog.get_logger(__name__)


def _order(record: SlowLog) -> tuple[int, int]:
    return (record.time_stamp, record.id)


class SlowLogRetention:
    """Merges new slow logs into a capped, most-recent-first history.

    Records are prepended oldest first, so after a merge the newest record
    is at the head of the list. The history is then trimmed to
    ``max_count`` entries, dropping the oldest from the tail. ``merge``
    writes whatever it is given; callers drop already persisted entries
    with :func:`newer_than` against the current head.
    """

    def __init__(self, store: HistoryStore, max_count: int, key_prefix: str = "_kvmonitor") -> None:
        self.store = store
        self.max_count = max_count
        self.key_prefix = key_prefix

    async def merge(self, cluster_name: str, new_records: Iterable[SlowLog]) -> int:
        """Persist ``new_records``; returns how many were written."""
        key = slow_log_key(self.key_prefix, cluster_name)
        ordered: List[SlowLog] = sorted(new_records, key=_order)

        for record in ordered:
            await self.store.prepend(key, record.to_json())
        await self.store.trim(key, self.max_count)

        if ordered:
            logger.info(
                "Saved slow logs",
                cluster=cluster_name,
                count=len(ordered),
                latest_id=ordered[-1].id,
            )
        return len(ordered)


async def read_history(
    registry: ClusterRegistry,
    cluster_name: str,
    offset: int = 0,
    limit: int = 100,
) -> PagerData[SlowLog]:
    """Read a page of a cluster's persisted slow logs."""
    return await registry.get_slow_log_history(cluster_name, offset, limit)


async def latest_saved(registry: ClusterRegistry, cluster_name: str) -> Optional[SlowLog]:
    """Head of the persisted history, None when nothing is stored yet."""
    page = await read_history(registry, cluster_name, offset=0, limit=1)
    return page.items[0] if page.items else None


def newer_than(records: Iterable[SlowLog], watermark: Optional[SlowLog]) -> List[SlowLog]:
    """Keep the records ordered after ``watermark`` by ``(time_stamp, id)``."""
    if watermark is None:
        return list(records)
    mark = _order(watermark)
    return [record for record in records if _order(record) > mark]

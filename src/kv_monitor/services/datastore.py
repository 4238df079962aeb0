"""Redis-backed storage of monitored clusters, notices and slow logs."""

from __future__ import annotations

import json
from typing import Optional, Set

import redis.asyncio as redis
import structlog
from redis.exceptions import WatchError

from kv_monitor.exceptions import ClusterNotFoundError
from kv_monitor.schemas import Notice, PagerData, SlowLog
from kv_monitor.services.keys import clusters_key, cluster_key, notice_key, slow_log_key

logger = structlog.get_logger(__name__)


class RedisDatastore:
    """The monitor's own Redis database.

    Layout (``prefix`` defaults to ``_kvmonitor``):
        {prefix}.clusters                   set of cluster names
        {prefix}.cluster.{name}             JSON ``{"hostAndPort": seed}``
        {prefix}.cluster.{name}.notice      Notice JSON
        {prefix}.cluster.{name}.slowLog     list of SlowLog JSON, newest first

    Implements HistoryStore: single LPUSH and LTRIM commands are atomic
    per key, so concurrent schedulers never interleave partial writes.

    Example:
        async with redis.Redis.from_url("redis://localhost:6379", decode_responses=True) as r:
            datastore = RedisDatastore(r)
            names = await datastore.list_cluster_names()
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "_kvmonitor") -> None:
        self.redis = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "_kvmonitor", max_connections: int = 10) -> RedisDatastore:
        pool = redis.ConnectionPool.from_url(
            url,
            decode_responses=True,
            max_connections=max_connections,
        )
        return cls(redis.Redis(connection_pool=pool), key_prefix)

    async def close(self) -> None:
        await self.redis.aclose()

    async def list_cluster_names(self) -> Set[str]:
        return set(await self.redis.smembers(clusters_key(self.key_prefix)))

    async def get_seed(self, name: str) -> str:
        """Address of the node used to read a cluster's topology."""
        raw = await self.redis.get(cluster_key(self.key_prefix, name))
        if not raw:
            raise ClusterNotFoundError(name)
        return json.loads(raw)["hostAndPort"]

    async def register_cluster(self, name: str, host_and_port: str) -> None:
        await self.redis.set(
            cluster_key(self.key_prefix, name),
            json.dumps({"hostAndPort": host_and_port}),
        )
        await self.redis.sadd(clusters_key(self.key_prefix), name)

    async def get_notice(self, name: str) -> Optional[Notice]:
        raw = await self.redis.get(notice_key(self.key_prefix, name))
        if not raw:
            return None
        return Notice.model_validate_json(raw)

    async def set_notice(self, name: str, notice: Notice) -> None:
        await self.redis.set(notice_key(self.key_prefix, name), notice.to_json())

    async def mute(self, name: str, until_millis: int) -> Notice:
        """Set the notice's ``invalidEndTime`` with an optimistic transaction.

        The notice is re-read and rewritten under WATCH, so a concurrent
        edit of the same notice restarts the update instead of being lost.
        """
        key = notice_key(self.key_prefix, name)
        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    notice = Notice.model_validate_json(raw) if raw else Notice()
                    notice = notice.model_copy(update={"invalid_end_time": str(until_millis)})
                    pipe.multi()
                    pipe.set(key, notice.to_json())
                    await pipe.execute()
                    logger.info("Notifications muted", cluster=name, until=until_millis)
                    return notice
                except WatchError:
                    logger.debug("Notice changed during mute, retrying", cluster=name)
                    continue

    async def get_slow_log_history(self, name: str, offset: int, limit: int) -> PagerData[SlowLog]:
        key = slow_log_key(self.key_prefix, name)
        total = await self.redis.llen(key)
        raw_items = await self.redis.lrange(key, offset, offset + limit - 1) if limit > 0 else []
        return PagerData[SlowLog](
            page=offset // limit if limit > 0 else 0,
            per_page=limit,
            total=total,
            items=[SlowLog.model_validate_json(raw) for raw in raw_items],
        )

    async def prepend(self, key: str, record: str) -> None:
        await self.redis.lpush(key, record)

    async def trim(self, key: str, max_count: int) -> None:
        await self.redis.ltrim(key, 0, max_count - 1)

"""ClusterRegistry backed by the datastore and live seed-node reads."""

from __future__ import annotations

from typing import Optional, Set

from kv_monitor.schemas import Cluster, Notice, PagerData, SlowLog
from kv_monitor.services.datastore import RedisDatastore
from kv_monitor.services.node_client import RedisNodeClient


class RedisClusterRegistry:
    """Stored state comes from the datastore, topology from the seed node."""

    def __init__(self, datastore: RedisDatastore, node_client: RedisNodeClient) -> None:
        self.datastore = datastore
        self.node_client = node_client

    async def list_cluster_names(self) -> Set[str]:
        return await self.datastore.list_cluster_names()

    async def get_notice(self, name: str) -> Optional[Notice]:
        return await self.datastore.get_notice(name)

    async def get_cluster(self, name: str) -> Cluster:
        seed = await self.datastore.get_seed(name)
        info = await self.node_client.cluster_info(seed)
        nodes = await self.node_client.cluster_nodes(seed)
        return Cluster(
            cluster_name=name,
            status=info.get("cluster_state", "unknown"),
            info=info,
            nodes=nodes,
        )

    async def get_slow_log_history(self, name: str, offset: int, limit: int) -> PagerData[SlowLog]:
        return await self.datastore.get_slow_log_history(name, offset, limit)

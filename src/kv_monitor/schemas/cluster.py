"""Cluster schemas."""

from __future__ import annotations

from typing import Dict, List

from pydantic import ConfigDict, Field

from kv_monitor.schemas.base import CamelModel


class ClusterNode(CamelModel):
    """One node of a cluster, identified by ``(node_id, host_and_port)``."""

    model_config = ConfigDict(frozen=True)

    node_id: str = Field(..., min_length=1)
    host_and_port: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.node_id}@{self.host_and_port}"


class Cluster(CamelModel):
    """Snapshot of a cluster taken once per scheduling cycle."""

    cluster_name: str = ""
    status: str = ""
    info: Dict[str, str] = Field(default_factory=dict)
    nodes: List[ClusterNode] = Field(default_factory=list)


NodeMetrics = Dict[ClusterNode, Dict[str, str]]

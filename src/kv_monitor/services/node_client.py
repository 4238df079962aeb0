"""Direct reads from Redis Cluster nodes."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Sequence

import redis.asyncio as redis
import structlog

from kv_monitor.schemas import ClusterNode, NodeMetrics, SlowLog

logger = structlog.get_logger(__name__)


def parse_info_text(raw: str) -> Dict[str, str]:
    """Parse ``key:value`` lines as returned by ``CLUSTER INFO``."""
    info: Dict[str, str] = {}
    for line in raw.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        key, value = line.split(":", 1)
        info[key] = value
    return info


def flatten_info(info: Dict[str, Any]) -> Dict[str, str]:
    """Turn redis-py's typed ``INFO`` dict into string values."""
    flat: Dict[str, str] = {}
    for key, value in info.items():
        if isinstance(value, dict):
            flat[key] = ",".join(f"{k}={v}" for k, v in value.items())
        else:
            flat[key] = str(value)
    return flat


def parse_nodes_text(raw: str) -> List[ClusterNode]:
    """Parse ``CLUSTER NODES`` output into nodes, skipping address-less ones."""
    nodes: List[ClusterNode] = []
    for line in raw.splitlines():
        parts = line.split()
        if len(parts) < 3 or "noaddr" in parts[2]:
            continue
        address = parts[1].split("@", 1)[0]
        nodes.append(ClusterNode(node_id=parts[0], host_and_port=address))
    return nodes


def parse_nodes_dict(parsed: Dict[str, Dict[str, Any]]) -> List[ClusterNode]:
    """Same as :func:`parse_nodes_text` for redis-py's pre-parsed form."""
    nodes: List[ClusterNode] = []
    for address, details in parsed.items():
        if "noaddr" in str(details.get("flags", "")):
            continue
        nodes.append(
            ClusterNode(
                node_id=details["node_id"],
                host_and_port=address.split("@", 1)[0],
            )
        )
    return nodes


def to_slow_log(entry: Dict[str, Any], host_and_port: str) -> SlowLog:
    command = entry.get("command", "")
    if isinstance(command, bytes):
        command = command.decode("utf-8", errors="replace")
    return SlowLog(
        id=int(entry["id"]),
        time_stamp=int(entry["start_time"]),
        execution_time=int(entry.get("duration", 0)),
        args=str(command).split(" ") if command else [],
        host_and_port=host_and_port,
    )


class RedisNodeClient:
    """Opens a short-lived connection per node read.

    Every connection carries socket and connect timeouts, so an
    unreachable node fails the read instead of hanging the cycle.
    """

    def __init__(self, timeout: float = 10.0, slow_log_fetch_count: int = 128) -> None:
        self.timeout = timeout
        self.slow_log_fetch_count = slow_log_fetch_count

    def _connect(self, host_and_port: str) -> redis.Redis:
        host, port = host_and_port.rsplit(":", 1)
        return redis.Redis(
            host=host,
            port=int(port),
            socket_timeout=self.timeout,
            socket_connect_timeout=self.timeout,
            decode_responses=True,
        )

    async def cluster_info(self, host_and_port: str) -> Dict[str, str]:
        client = self._connect(host_and_port)
        try:
            raw = await client.execute_command("CLUSTER INFO")
        finally:
            await client.aclose()
        if isinstance(raw, dict):
            return {k: str(v) for k, v in raw.items()}
        return parse_info_text(raw)

    async def cluster_nodes(self, host_and_port: str) -> List[ClusterNode]:
        client = self._connect(host_and_port)
        try:
            raw = await client.execute_command("CLUSTER NODES")
        finally:
            await client.aclose()
        if isinstance(raw, dict):
            return parse_nodes_dict(raw)
        return parse_nodes_text(raw)

    async def node_info(self, node: ClusterNode) -> Dict[str, str]:
        client = self._connect(node.host_and_port)
        try:
            return flatten_info(await client.info())
        finally:
            await client.aclose()

    async def node_slow_logs(self, node: ClusterNode) -> List[SlowLog]:
        """Read the newest entries of a node's slowlog, leaving it intact."""
        client = self._connect(node.host_and_port)
        try:
            entries = await client.slowlog_get(self.slow_log_fetch_count)
        finally:
            await client.aclose()
        return [to_slow_log(entry, node.host_and_port) for entry in entries]

    async def fetch(self, nodes: Sequence[ClusterNode]) -> NodeMetrics:
        """INFO of every node; unreachable nodes are logged and left out.

        Raises the first error when no node at all could be read.
        """
        results = await asyncio.gather(
            *(self.node_info(node) for node in nodes),
            return_exceptions=True,
        )
        metrics: NodeMetrics = {}
        errors: List[BaseException] = []
        for node, result in zip(nodes, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to read node info", node=str(node), error=str(result))
                errors.append(result)
            else:
                metrics[node] = result
        if nodes and not metrics and errors:
            raise errors[0]
        return metrics

    async def fetch_slow_logs(self, nodes: Sequence[ClusterNode]) -> List[SlowLog]:
        results = await asyncio.gather(
            *(self.node_slow_logs(node) for node in nodes),
            return_exceptions=True,
        )
        slow_logs: List[SlowLog] = []
        for node, result in zip(nodes, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to read slow log", node=str(node), error=str(result))
                continue
            slow_logs.extend(result)
        return slow_logs

"""Datastore key layout."""

from __future__ import annotations


def clusters_key(prefix: str) -> str:
    return f"{prefix}.clusters"


def cluster_key(prefix: str, cluster_name: str) -> str:
    return f"{prefix}.cluster.{cluster_name}"


def notice_key(prefix: str, cluster_name: str) -> str:
    return f"{cluster_key(prefix, cluster_name)}.notice"


def slow_log_key(prefix: str, cluster_name: str) -> str:
    return f"{cluster_key(prefix, cluster_name)}.slowLog"

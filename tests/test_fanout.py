"""Tests for telemetry fanout and sinks."""

from __future__ import annotations

import asyncio
import logging

import pytest

from kv_monitor.monitoring.fanout import MetricsFanout
from kv_monitor.monitoring.telemetry import LogTelemetrySink, PrometheusTelemetrySink

from tests.conftest import NODE_1, NODE_2, RecordingTelemetrySink

FIELDS = ["use_memory", "connected_clients", "instantaneous_ops_per_sec"]


@pytest.mark.asyncio
async def test_publish_emits_one_record_per_node(sample_cluster, sample_node_metrics) -> None:
    sink = RecordingTelemetrySink()
    fanout = MetricsFanout(sink, tag="tag", fields=FIELDS)

    delivered = await fanout.publish(sample_cluster, sample_node_metrics)

    assert delivered == 2
    assert len(sink.records) == 2
    assert {node for _, node, _ in sink.records} == {NODE_1, NODE_2}
    for tag, _, record in sink.records:
        assert tag == "tag"
        assert record == {
            "cluster_name": "cluster1",
            "use_memory": "200000000",
            "connected_clients": "1000",
            "instantaneous_ops_per_sec": "1000",
        }


def test_build_record_selects_configured_fields(sample_cluster) -> None:
    fanout = MetricsFanout(RecordingTelemetrySink(), tag="tag", fields=["used_memory", "role"])
    record = fanout.build_record(sample_cluster, {"used_memory": "10", "uptime": "99"})
    assert record == {"cluster_name": "cluster1", "used_memory": "10"}


@pytest.mark.asyncio
async def test_failing_node_does_not_block_others(sample_cluster, sample_node_metrics) -> None:
    sink = RecordingTelemetrySink(failing_nodes=[NODE_1.node_id])
    fanout = MetricsFanout(sink, tag="tag", fields=FIELDS)

    delivered = await fanout.publish(sample_cluster, sample_node_metrics)

    assert delivered == 1
    assert [node for _, node, _ in sink.records] == [NODE_2]


@pytest.mark.asyncio
async def test_slow_sink_times_out(sample_cluster, sample_node_metrics) -> None:
    class SlowSink:
        async def emit(self, tag, node, metrics):
            if node == NODE_1:
                await asyncio.sleep(5)

    fanout = MetricsFanout(SlowSink(), tag="tag", fields=FIELDS, timeout=0.05)

    assert await fanout.publish(sample_cluster, sample_node_metrics) == 1


@pytest.mark.asyncio
async def test_log_sink_writes_tagged_event(caplog) -> None:
    caplog.set_level(logging.INFO, logger="kv_monitor.telemetry")
    await LogTelemetrySink().emit("kvmonitor.node", NODE_1, {"used_memory": "42"})

    records = [r for r in caplog.records if r.name == "kv_monitor.telemetry"]
    assert len(records) == 1
    message = records[0].getMessage()
    assert "kvmonitor.node" in message
    assert "used_memory" in message
    assert NODE_1.host_and_port in message


@pytest.mark.asyncio
async def test_log_sink_accepts_metrics_named_like_event_fields(caplog) -> None:
    caplog.set_level(logging.INFO, logger="kv_monitor.telemetry")
    await LogTelemetrySink().emit(
        "kvmonitor.node", NODE_1, {"event": "x", "node_id": "y", "host_and_port": "z"}
    )

    records = [r for r in caplog.records if r.name == "kv_monitor.telemetry"]
    assert len(records) == 1
    assert "kvmonitor.node" in records[0].getMessage()
    assert NODE_1.node_id in records[0].getMessage()


@pytest.mark.asyncio
async def test_prometheus_sink_sets_gauges() -> None:
    sink = PrometheusTelemetrySink()
    await sink.emit(
        "tag",
        NODE_1,
        {"cluster_name": "cluster1", "used_memory": "1024", "role": "master"},
    )

    labels = {
        "tag": "tag",
        "cluster": "cluster1",
        "node_id": NODE_1.node_id,
        "host_and_port": NODE_1.host_and_port,
    }
    assert sink.value("used_memory", **labels) == 1024.0
    assert sink.value("role", **labels) is None
    assert sink.value("cluster_name", **labels) is None

"""Tests for data schemas."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from kv_monitor.schemas import (
    ClusterNode,
    Notice,
    NoticeItem,
    NoticeOperator,
    NoticeType,
    NoticeValueType,
    SlowLog,
)


def test_notice_from_stored_json() -> None:
    notice = Notice.model_validate_json(
        json.dumps(
            {
                "mail": {"to": "a@example.com,, b@example.com ", "from": "redis@example.com"},
                "invalidEndTime": "1700000000000",
                "items": [
                    {
                        "metricsName": "used_memory",
                        "metricsType": "node_info",
                        "operator": "ge",
                        "value": "1073741824",
                        "valueType": "number",
                    }
                ],
            }
        )
    )

    assert notice.mail.recipients == ["a@example.com", "b@example.com"]
    assert notice.mail.from_address == "redis@example.com"
    assert notice.http.url == ""
    assert notice.invalid_end_time == "1700000000000"
    item = notice.items[0]
    assert item.metrics_type is NoticeType.NODE_INFO
    assert item.operator is NoticeOperator.GE
    assert item.value_type is NoticeValueType.NUMBER


def test_notice_serializes_camel_case() -> None:
    data = json.loads(Notice(invalid_end_time="1").to_json())
    assert data["invalidEndTime"] == "1"
    assert data["mail"] == {"to": "", "from": ""}


def test_unknown_operator_rejected() -> None:
    with pytest.raises(ValidationError):
        NoticeItem(
            metrics_name="used_memory",
            metrics_type="node_info",
            operator="approx",
            value="1",
            value_type="number",
        )


def test_cluster_node_identity() -> None:
    node = ClusterNode(node_id="abc", host_and_port="10.0.0.1:6379")

    assert node == ClusterNode(node_id="abc", host_and_port="10.0.0.1:6379")
    assert node != ClusterNode(node_id="abc", host_and_port="10.0.0.1:6380")
    assert {node: 1}[ClusterNode(node_id="abc", host_and_port="10.0.0.1:6379")] == 1
    assert str(node) == "abc@10.0.0.1:6379"


def test_cluster_node_is_immutable() -> None:
    node = ClusterNode(node_id="abc", host_and_port="10.0.0.1:6379")
    with pytest.raises(ValidationError):
        node.node_id = "other"


def test_slow_log_json_names() -> None:
    record = SlowLog(id=1, time_stamp=2, execution_time=3, args=["PING"], host_and_port="h:1")
    assert json.loads(record.to_json()) == {
        "id": 1,
        "timeStamp": 2,
        "executionTime": 3,
        "args": ["PING"],
        "hostAndPort": "h:1",
    }


def test_notice_accepts_numeric_values() -> None:
    """Test that thresholds and mute times written as JSON numbers load as text."""
    notice = Notice.model_validate_json(
        json.dumps(
            {
                "invalidEndTime": 1700000000000,
                "items": [
                    {
                        "metricsName": "connected_clients",
                        "metricsType": "node_info",
                        "operator": "gt",
                        "value": 1000,
                        "valueType": "number",
                    },
                    {
                        "metricsName": "mem_fragmentation_ratio",
                        "metricsType": "node_info",
                        "operator": "ge",
                        "value": 1.5,
                        "valueType": "number",
                    },
                ],
            }
        )
    )

    assert notice.invalid_end_time == "1700000000000"
    assert notice.items[0].value == "1000"
    assert notice.items[1].value == "1.5"

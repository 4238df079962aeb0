"""Alerting rule schemas."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from kv_monitor.schemas.base import CamelModel


class NoticeType(str, Enum):
    """Where a rule reads its metric from."""
    CLUSTER_INFO = "cluster_info"
    NODE_INFO = "node_info"


class NoticeOperator(str, Enum):
    """Comparison applied between the observed value and the threshold."""
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"


class NoticeValueType(str, Enum):
    """How observed and threshold values are compared."""
    STRING = "string"
    NUMBER = "number"


class NoticeMail(CamelModel):
    """Mail recipients of a cluster's alerts."""
    to: str = ""
    from_address: str = Field(default="", alias="from")

    @property
    def recipients(self) -> List[str]:
        return [addr.strip() for addr in self.to.split(",") if addr.strip()]


class NoticeHttp(CamelModel):
    """Webhook target of a cluster's alerts."""
    url: str = ""


class NoticeItem(CamelModel):
    """A single threshold rule."""
    metrics_name: str = Field(..., min_length=1)
    metrics_type: NoticeType
    operator: NoticeOperator
    value: str
    value_type: NoticeValueType


class Notice(CamelModel):
    """Alerting configuration of one cluster."""
    mail: NoticeMail = Field(default_factory=NoticeMail)
    http: NoticeHttp = Field(default_factory=NoticeHttp)
    invalid_end_time: str = ""
    items: List[NoticeItem] = Field(default_factory=list)


class ResultValue(CamelModel):
    """An observed value that matched a rule."""
    value: str
    node_id: Optional[str] = None
    host_and_port: Optional[str] = None


class NoticeJob(CamelModel):
    """A rule that matched at least one source, with every matching value."""
    item: NoticeItem
    result_values: List[ResultValue] = Field(default_factory=list)

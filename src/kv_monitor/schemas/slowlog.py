"""Slow log schemas."""

from __future__ import annotations

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kv_monitor.schemas.base import CamelModel

T = TypeVar("T")


class SlowLog(CamelModel):
    """A command that exceeded the node's slowlog threshold."""

    model_config = ConfigDict(frozen=True)

    id: int
    time_stamp: int
    execution_time: int = 0
    args: List[str] = Field(default_factory=list)
    host_and_port: str = ""


class PagerData(BaseModel, Generic[T]):
    """A page of persisted records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int = 0
    per_page: int = 0
    total: int = 0
    items: List[T] = Field(default_factory=list)

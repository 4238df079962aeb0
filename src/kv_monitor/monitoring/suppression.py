"""Mute window of a cluster's notifications."""

from __future__ import annotations

import time
from typing import Optional

import structlog

from kv_monitor.schemas import Notice

logger = structlog.get_logger(__name__)


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def is_suppressed(notice: Notice, now: Optional[int] = None) -> bool:
    """Return True while ``notice.invalid_end_time`` lies in the future.

    ``invalid_end_time`` is an epoch-millisecond timestamp set by operators
    after an alert to mute repeats. Empty means no mute; an unparsable
    value is logged and treated as no mute.
    """
    raw = (notice.invalid_end_time or "").strip()
    if not raw:
        return False

    try:
        end_time = int(raw)
    except ValueError:
        logger.warning("Ignoring unparsable invalidEndTime", invalid_end_time=raw)
        return False

    if now is None:
        now = now_millis()
    return end_time > now

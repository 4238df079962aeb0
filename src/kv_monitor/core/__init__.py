"""Core wiring of the monitor."""

from kv_monitor.core.orchestrator import MonitorOrchestrator

__all__ = ["MonitorOrchestrator"]

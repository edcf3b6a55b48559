"""Observability: structured logging, metrics hooks and the debug timing log."""

from __future__ import annotations

from .debug_log import DebugLog
from .logger import StructuredFormatter, get_logger
from .metrics import MetricsHook, NoopMetricsHook

__all__ = [
    "DebugLog",
    "MetricsHook",
    "NoopMetricsHook",
    "StructuredFormatter",
    "get_logger",
]

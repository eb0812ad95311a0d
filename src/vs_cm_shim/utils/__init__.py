"""Utility functions for the VirtualServer cert-manager shim."""

from .context import (
    get_context_dict,
    get_correlation_id,
    new_correlation_id,
    set_correlation_id,
    with_correlation_id,
)
from .durations import format_duration, parse_duration
from .events import EventRecorder, emit_event
from .rate_limit import is_rate_limit_error, rate_limit_k8s, retry_on_rate_limit

__all__ = [
    "EventRecorder",
    "emit_event",
    "format_duration",
    "parse_duration",
    "rate_limit_k8s",
    "retry_on_rate_limit",
    "is_rate_limit_error",
    "new_correlation_id",
    "set_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]

"""Base class with the structured logging helpers shared by handlers."""

from __future__ import annotations

import logging
from typing import Any

from ..logging import log_resource_event


class BaseHandler:
    """Base class for components that log against a Kubernetes resource."""

    def __init__(self, kind: str, logger: logging.Logger | None = None):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind logged against
            logger: Logger to use, defaults to the module logger
        """
        self.kind = kind
        self.logger = logger or logging.getLogger(__name__)

    def _get_resource_context(self, body: dict[str, Any]) -> dict[str, Any]:
        """Extract common resource context from a resource body.

        Args:
            body: Kubernetes resource body

        Returns:
            Dictionary with resource context fields
        """
        meta = body.get("metadata", {})
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        body: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(body)
        log_resource_event(
            self.logger,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_debug(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "debug",
        reason: str = "Debug",
        **kwargs: Any,
    ) -> None:
        """Log a debug-level structured log message."""
        self._log(logging.DEBUG, body, message, event, reason, **kwargs)

    def log_info(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            body: Kubernetes resource body
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, body, message, event, reason, **kwargs)

    def log_warning(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, body, message, event, reason, **kwargs)

    def log_error(
        self,
        body: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            body: Kubernetes resource body
            message: Log message
            error: Optional exception to include error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()

        if error is not None:
            log_data["error"] = str(error)
            log_data["error_type"] = type(error).__name__

        self._log(logging.ERROR, body, message, event, reason, **log_data)

"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_BAD_CONFIG,
    EVENT_REASON_CREATE_CERTIFICATE,
    EVENT_REASON_DELETE_CERTIFICATE,
    EVENT_REASON_FOREIGNLY_OWNED,
    EVENT_REASON_UPDATE_CERTIFICATE,
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = EVENT_TYPE_NORMAL,
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Body of the resource the event is about
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


class EventRecorder:
    """Event sink used during reconciliation.

    Events are posted through kopf; tests replace the recorder with a mock.
    """

    def event(self, body: dict[str, Any], type_: str, reason: str, message: str) -> None:
        emit_event(body, reason, message, type_=type_)

    def bad_config(self, body: dict[str, Any], message: str) -> None:
        """Emit bad configuration warning."""
        self.event(body, EVENT_TYPE_WARNING, EVENT_REASON_BAD_CONFIG, message)

    def certificate_created(self, body: dict[str, Any], name: str) -> None:
        """Emit certificate created event."""
        self.event(
            body, EVENT_TYPE_NORMAL, EVENT_REASON_CREATE_CERTIFICATE,
            f'Successfully created Certificate "{name}"',
        )

    def certificate_updated(self, body: dict[str, Any], name: str) -> None:
        """Emit certificate updated event."""
        self.event(
            body, EVENT_TYPE_NORMAL, EVENT_REASON_UPDATE_CERTIFICATE,
            f'Successfully updated Certificate "{name}"',
        )

    def certificate_deleted(self, body: dict[str, Any], name: str) -> None:
        """Emit certificate deleted event."""
        self.event(
            body, EVENT_TYPE_NORMAL, EVENT_REASON_DELETE_CERTIFICATE,
            f'Successfully deleted unrequired Certificate "{name}"',
        )

    def certificate_foreign(self, body: dict[str, Any], name: str) -> None:
        """Emit warning about a Certificate owned by something else."""
        self.event(
            body, EVENT_TYPE_WARNING, EVENT_REASON_FOREIGNLY_OWNED,
            f'Certificate "{name}" exists but is not controlled by this VirtualServer, leaving it untouched',
        )

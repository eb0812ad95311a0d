"""Handler for Certificate change notifications."""

from __future__ import annotations

import logging
from typing import Any

from ..constants import KIND_CERTIFICATE, KIND_VIRTUAL_SERVER
from ..resources import get_controller_of
from ..workqueue import RateLimitingQueue
from .base import BaseHandler

logger = logging.getLogger(__name__)


class CertificateEventHandler(BaseHandler):
    """Re-queues the VirtualServer controlling a changed Certificate.

    Adds are handled too: the workqueue de-duplicates keys, so queueing a
    VirtualServer that just created the Certificate costs nothing. Updates
    are checked against the desired state, and deletes recreate the
    Certificate immediately.

    The owner reference carries no namespace, owner references only work
    within the namespace of the owned object::

        kind: Certificate
        metadata:
          namespace: default
          ownerReferences:
          - controller: true
            apiVersion: k8s.nginx.org/v1
            kind: VirtualServer
            name: cafe
    """

    def __init__(self, queue: RateLimitingQueue):
        super().__init__(KIND_CERTIFICATE, logger)
        self.queue = queue

    def _enqueue_owner(self, certificate: Any) -> None:
        if not isinstance(certificate, dict):
            self.logger.error(f"not a Certificate object: {certificate!r}")
            return

        ref = get_controller_of(certificate)
        if ref is None:
            # Orphans are nobody's concern
            return

        # apiVersion is not compared: nothing else is called VirtualServer
        if ref.get("kind") != KIND_VIRTUAL_SERVER:
            return

        namespace = certificate.get("metadata", {}).get("namespace", "")
        key = f"{namespace}/{ref.get('name')}"
        self.log_debug(certificate, "queueing controlling virtualserver", key=key)
        self.queue.add(key)

    def on_add(self, certificate: dict[str, Any]) -> None:
        self._enqueue_owner(certificate)

    def on_update(self, old: dict[str, Any] | None, new: dict[str, Any]) -> None:
        self._enqueue_owner(new)

    def on_delete(self, certificate: dict[str, Any]) -> None:
        self._enqueue_owner(certificate)

    def dispatch(self, event_type: str | None, body: dict[str, Any]) -> None:
        """Route a raw watch event to the matching method.

        Args:
            event_type: ``ADDED``, ``MODIFIED``, ``DELETED`` or None for
                objects seen during the initial listing
            body: Certificate body
        """
        if event_type == "DELETED":
            self.on_delete(body)
        elif event_type == "MODIFIED":
            self.on_update(None, body)
        else:
            self.on_add(body)

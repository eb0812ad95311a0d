"""Handler for VirtualServer change notifications."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from ..constants import KIND_VIRTUAL_SERVER
from ..resources import get_raw_cert_manager_block, resource_key
from ..workqueue import RateLimitingQueue
from .base import BaseHandler

logger = logging.getLogger(__name__)


class VirtualServerEventHandler(BaseHandler):
    """Queues VirtualServers whose certificate configuration may have changed."""

    def __init__(self, queue: RateLimitingQueue):
        super().__init__(KIND_VIRTUAL_SERVER, logger)
        self.queue = queue
        # Last seen cert-manager block per key, the "old" side of updates
        self._last_seen: dict[str, Any] = {}
        self._lock = threading.Lock()

    def on_add(self, virtual_server: dict[str, Any]) -> None:
        self.queue.add(resource_key(virtual_server))

    def on_update(self, old: dict[str, Any], new: dict[str, Any]) -> None:
        """Queue ``new`` only when its cert-manager block changed."""
        if get_raw_cert_manager_block(old) != get_raw_cert_manager_block(new):
            self.queue.add(resource_key(new))
        else:
            self.log_debug(new, "certificate configuration unchanged, skipping")

    def on_delete(self, virtual_server: dict[str, Any]) -> None:
        self.queue.add(resource_key(virtual_server))

    def dispatch(self, event_type: str | None, body: Any) -> None:
        """Route a raw watch event to the matching method.

        Args:
            event_type: ``ADDED``, ``MODIFIED``, ``DELETED`` or None for
                objects seen during the initial listing
            body: VirtualServer body
        """
        if not isinstance(body, dict):
            self.logger.error(f"received unexpected object: {body!r}")
            return

        key = resource_key(body)
        block = copy.deepcopy(get_raw_cert_manager_block(body))

        with self._lock:
            if event_type == "DELETED":
                self._last_seen.pop(key, None)
                seen, previous = False, None
            else:
                seen = key in self._last_seen
                previous = self._last_seen.get(key)
                self._last_seen[key] = block

        if event_type == "DELETED":
            self.on_delete(body)
        elif seen:
            old = {"spec": {"tls": {"cert-manager": previous}}} if previous is not None else {}
            self.on_update(old, body)
        else:
            self.on_add(body)

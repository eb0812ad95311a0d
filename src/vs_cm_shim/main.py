"""Main entry point for the VirtualServer cert-manager shim."""

from __future__ import annotations

import logging
import os
from typing import Any

import kopf

from . import logging as structured_logging
from . import tracing
from .config import ShimOptions
from .constants import (
    CERTIFICATE_PLURAL,
    CM_GROUP,
    CM_VERSION,
    VS_GROUP,
    VS_PLURAL,
    VS_VERSION,
)
from .controller import new_controller
from .handlers import CertificateEventHandler, VirtualServerEventHandler
from .health import start_health_server

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and start the reconciliation workers."""
    structured_logging.setup_structured_logging()
    tracing.initialize_tracing()

    options = ShimOptions.from_env()

    # Only warnings from kopf's own logging become Kubernetes events
    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = options.request_timeout

    controller = new_controller(options)
    memo.controller = controller
    memo.virtual_server_handler = VirtualServerEventHandler(controller.queue)
    memo.certificate_handler = CertificateEventHandler(controller.queue)

    # Metrics and health endpoints share one port
    memo.health_server = start_health_server(options.metrics_port, lambda: controller.ready)

    controller.start()
    logger.info(
        f"Default issuer {options.default_issuer_kind}/{options.default_issuer_name or '<unset>'}, "
        f"{options.worker_count} workers"
    )


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop the workers and the health server."""
    controller = getattr(memo, "controller", None)
    if controller is not None:
        controller.stop()
    server = getattr(memo, "health_server", None)
    if server is not None:
        server.shutdown()


@kopf.on.event(VS_GROUP, VS_VERSION, VS_PLURAL)
def handle_virtual_server_event(event: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Queue VirtualServers whose certificate configuration may have changed."""
    memo.virtual_server_handler.dispatch(event.get("type"), event.get("object"))


@kopf.on.event(CM_GROUP, CM_VERSION, CERTIFICATE_PLURAL)
def handle_certificate_event(event: dict[str, Any], memo: kopf.Memo, **_: Any) -> None:
    """Queue the VirtualServer controlling a changed Certificate."""
    memo.certificate_handler.dispatch(event.get("type"), event.get("object"))


def run() -> None:
    """Run the operator.

    Watches the namespaces listed in ``WATCH_NAMESPACES`` (comma
    separated), or the whole cluster when it is unset.
    """
    namespaces = [ns.strip() for ns in os.getenv("WATCH_NAMESPACES", "").split(",") if ns.strip()]
    if namespaces:
        kopf.run(namespaces=namespaces)
    else:
        kopf.run(clusterwide=True)

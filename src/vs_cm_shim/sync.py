"""Reconciliation of the Certificates owned by a VirtualServer."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from . import metrics
from .builders.certificate import build_certificates
from .constants import KIND_VIRTUAL_SERVER
from .gc import find_certificates_to_be_removed, required_secret_names
from .handlers.base import BaseHandler
from .issuer import resolve_issuer
from .models import IssuerRef
from .resources import get_secret_name, resource_key
from .store import KubernetesStore
from .tracing import trace_span
from .utils.errors import BadConfigError, InvalidAnnotationError, ReconcileCancelledError
from .utils.events import EventRecorder

logger = logging.getLogger(__name__)


class CertificateSyncer(BaseHandler):
    """Keeps a VirtualServer's Certificates in line with its TLS block.

    A pass resolves the issuer, builds the desired Certificate, creates or
    updates it, then deletes the Certificates the VirtualServer controls
    but no longer requires.
    """

    def __init__(
        self,
        store: KubernetesStore,
        recorder: EventRecorder,
        defaults: IssuerRef,
        enforce_ownership: bool = True,
    ):
        """Initialize the syncer.

        Args:
            store: Kubernetes store for reads and writes
            recorder: Event sink
            defaults: Issuer used when a VirtualServer names none
            enforce_ownership: Skip existing Certificates the VirtualServer
                does not control instead of overwriting them
        """
        super().__init__(KIND_VIRTUAL_SERVER, logger)
        self.store = store
        self.recorder = recorder
        self.defaults = defaults
        self.enforce_ownership = enforce_ownership

    def _check_cancelled(self, cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise ReconcileCancelledError("reconciliation cancelled")

    def sync(self, virtual_server: dict[str, Any], cancel: threading.Event | None = None) -> None:
        """Run one reconciliation pass.

        Issuer configuration errors end the pass without raising. Invalid
        cert-manager settings and store errors propagate so the caller can
        decide on a retry.

        Args:
            virtual_server: Current VirtualServer body
            cancel: Set to abort the pass before its next store call

        Raises:
            InvalidAnnotationError: If the cert-manager block is invalid
            ReconcileCancelledError: If ``cancel`` was set
            client.exceptions.ApiException: On store errors
        """
        start_time = time.time()
        attributes = {"resource.kind": KIND_VIRTUAL_SERVER, "resource.key": resource_key(virtual_server)}
        try:
            with trace_span("sync_virtual_server", attributes=attributes):
                result = self._sync(virtual_server, cancel)
            metrics.reconcile_total.labels(result=result).inc()
        except Exception as e:
            metrics.error_total.labels(error_type=type(e).__name__).inc()
            metrics.reconcile_total.labels(result="error").inc()
            raise
        finally:
            metrics.reconcile_duration_seconds.observe(time.time() - start_time)

    def _sync(self, vs: dict[str, Any], cancel: threading.Event | None) -> str:
        namespace = vs.get("metadata", {}).get("namespace")
        required = required_secret_names(vs)

        if required:
            if not self._apply_certificate(vs, namespace, cancel):
                return "bad_config"
        else:
            # Without a TLS secret there is nothing to issue, only leftovers to remove
            self.log_debug(vs, "no tls secret declared, skipping certificate creation")

        self._check_cancelled(cancel)
        certificates = self.store.list_certificates(namespace)

        for name in find_certificates_to_be_removed(certificates, vs, required):
            self._check_cancelled(cancel)
            self._write("delete", self.store.delete_certificate, namespace, name)
            self.recorder.certificate_deleted(vs, name)
            self.log_info(vs, "deleted unrequired certificate", reason="DeleteCertificate", certificate=name)

        return "success"

    def _apply_certificate(
        self, vs: dict[str, Any], namespace: str, cancel: threading.Event | None
    ) -> bool:
        """Create or update the Certificate for the VirtualServer's secret.

        Returns:
            False if the issuer configuration is unusable
        """
        try:
            issuer_ref = resolve_issuer(self.defaults, vs)
        except BadConfigError as e:
            self.log_error(
                vs, "failed to determine issuer to be used for virtualserver resource",
                error=e, reason="BadConfig",
            )
            self.recorder.bad_config(
                vs, f"Could not determine issuer for virtualserver due to bad configuration: {e}"
            )
            return False

        self._check_cancelled(cancel)
        existing = self.store.get_certificate(namespace, get_secret_name(vs))

        try:
            plan = build_certificates(
                vs, issuer_ref, existing,
                enforce_ownership=self.enforce_ownership, log=self,
            )
        except InvalidAnnotationError as e:
            self.log_error(vs, "failed to translate cert-manager configuration", error=e, reason="BadConfig")
            self.recorder.bad_config(vs, f"Could not build Certificate due to bad configuration: {e}")
            raise

        for crt in plan.new:
            self._check_cancelled(cancel)
            self._write("create", self.store.create_certificate, crt)
            self.recorder.certificate_created(vs, crt["metadata"]["name"])
            self.log_info(vs, "created certificate", reason="CreateCertificate", certificate=crt["metadata"]["name"])

        for crt in plan.foreign:
            name = crt["metadata"]["name"]
            self.recorder.certificate_foreign(vs, name)
            self.log_warning(vs, "skipping certificate not controlled by this object", reason="ForeignlyOwned", certificate=name)

        for crt in plan.update:
            self._check_cancelled(cancel)
            self._write("update", self.store.update_certificate, crt)
            self.recorder.certificate_updated(vs, crt["metadata"]["name"])
            self.log_info(vs, "updated certificate", reason="UpdateCertificate", certificate=crt["metadata"]["name"])

        return True

    def _write(self, operation: str, method: Any, *args: Any) -> None:
        try:
            method(*args)
        except Exception:
            metrics.certificate_operations_total.labels(operation=operation, result="failed").inc()
            raise
        metrics.certificate_operations_total.labels(operation=operation, result="success").inc()

"""Tests for the Certificate syncer."""

from __future__ import annotations

import threading
from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException

from vs_cm_shim.builders.certificate import build_certificate
from vs_cm_shim.models import IssuerRef
from vs_cm_shim.resources import new_controller_ref
from vs_cm_shim.store import KubernetesStore
from vs_cm_shim.sync import CertificateSyncer
from vs_cm_shim.utils.errors import InvalidAnnotationError, ReconcileCancelledError
from vs_cm_shim.utils.events import EventRecorder

DEFAULTS = IssuerRef(name="default-issuer", kind="Issuer", group="cert-manager.io")


def make_virtual_server(cert_manager: dict[str, Any] | None = None) -> dict[str, Any]:
    tls: dict[str, Any] = {"secret": "cafe-secret"}
    if cert_manager is not None:
        tls["cert-manager"] = cert_manager
    return {
        "apiVersion": "k8s.nginx.org/v1",
        "kind": "VirtualServer",
        "metadata": {"name": "cafe", "namespace": "default", "uid": "vs-uid"},
        "spec": {"host": "cafe.example.com", "tls": tls},
    }


@pytest.fixture
def store():
    store = MagicMock(spec=KubernetesStore)
    store.get_certificate.return_value = None
    store.list_certificates.return_value = []
    return store


@pytest.fixture
def recorder():
    return MagicMock(spec=EventRecorder)


@pytest.fixture
def syncer(store, recorder):
    return CertificateSyncer(store, recorder, DEFAULTS)


class TestSync:
    """Test cases for CertificateSyncer.sync."""

    def test_creates_missing_certificate(self, syncer, store, recorder):
        """Test that a missing Certificate is created."""
        vs = make_virtual_server()

        syncer.sync(vs)

        store.get_certificate.assert_called_once_with("default", "cafe-secret")
        store.create_certificate.assert_called_once()
        created = store.create_certificate.call_args[0][0]
        assert created["metadata"]["name"] == "cafe-secret"
        assert created["spec"]["issuerRef"]["name"] == "default-issuer"
        recorder.certificate_created.assert_called_once_with(vs, "cafe-secret")
        store.update_certificate.assert_not_called()
        store.delete_certificate.assert_not_called()

    def test_updates_owned_certificate(self, syncer, store, recorder):
        """Test that an owned Certificate is updated on every pass."""
        vs = make_virtual_server()
        existing = build_certificate(vs, DEFAULTS)
        store.get_certificate.return_value = existing
        store.list_certificates.return_value = [existing]

        syncer.sync(vs)

        store.update_certificate.assert_called_once()
        recorder.certificate_updated.assert_called_once_with(vs, "cafe-secret")
        store.create_certificate.assert_not_called()
        store.delete_certificate.assert_not_called()

    def test_skips_foreign_certificate(self, syncer, store, recorder):
        """Test that a Certificate controlled by something else is not written."""
        vs = make_virtual_server()
        store.get_certificate.return_value = {
            "metadata": {"name": "cafe-secret", "namespace": "default"},
            "spec": {"secretName": "cafe-secret"},
        }

        syncer.sync(vs)

        store.update_certificate.assert_not_called()
        store.create_certificate.assert_not_called()
        recorder.certificate_foreign.assert_called_once_with(vs, "cafe-secret")

    def test_updates_foreign_certificate_without_enforcement(self, store, recorder):
        """Test the legacy behavior of overwriting unowned Certificates."""
        syncer = CertificateSyncer(store, recorder, DEFAULTS, enforce_ownership=False)
        store.get_certificate.return_value = {
            "metadata": {"name": "cafe-secret", "namespace": "default"},
            "spec": {},
        }

        syncer.sync(make_virtual_server())

        store.update_certificate.assert_called_once()
        recorder.certificate_foreign.assert_not_called()

    def test_deletes_unrequired_certificate(self, syncer, store, recorder):
        """Test that owned Certificates for old secrets are deleted."""
        vs = make_virtual_server()
        stale = {
            "metadata": {
                "name": "old-secret",
                "namespace": "default",
                "ownerReferences": [new_controller_ref(vs)],
            },
            "spec": {"secretName": "old-secret"},
        }
        store.list_certificates.return_value = [stale]

        syncer.sync(vs)

        store.list_certificates.assert_called_once_with("default")
        store.delete_certificate.assert_called_once_with("default", "old-secret")
        recorder.certificate_deleted.assert_called_once_with(vs, "old-secret")

    def test_virtual_server_without_tls(self, syncer, store, recorder):
        """Test that a VirtualServer without TLS only has its leftovers removed."""
        vs = {
            "apiVersion": "k8s.nginx.org/v1",
            "kind": "VirtualServer",
            "metadata": {"name": "cafe", "namespace": "default", "uid": "vs-uid"},
            "spec": {"host": "plain.example.com"},
        }
        owned = {
            "metadata": {
                "name": "cafe-secret",
                "namespace": "default",
                "ownerReferences": [new_controller_ref(vs)],
            },
            "spec": {"secretName": "cafe-secret"},
        }
        store.list_certificates.return_value = [owned]

        syncer.sync(vs)

        store.get_certificate.assert_not_called()
        store.create_certificate.assert_not_called()
        store.update_certificate.assert_not_called()
        store.delete_certificate.assert_called_once_with("default", "cafe-secret")
        recorder.certificate_deleted.assert_called_once_with(vs, "cafe-secret")

    def test_virtual_server_without_tls_needs_no_issuer(self, store, recorder):
        """Test that a missing default issuer is not reported when nothing is issued."""
        syncer = CertificateSyncer(store, recorder, IssuerRef(name="", kind="Issuer"))

        syncer.sync({"metadata": {"name": "cafe", "namespace": "default"}, "spec": {"host": "plain.example.com"}})

        recorder.bad_config.assert_not_called()
        store.create_certificate.assert_not_called()
        store.list_certificates.assert_called_once_with("default")

    def test_bad_issuer_config(self, store, recorder):
        """Test that issuer errors emit an event and write nothing."""
        syncer = CertificateSyncer(store, recorder, IssuerRef(name="", kind="Issuer"))
        vs = make_virtual_server()

        syncer.sync(vs)

        recorder.bad_config.assert_called_once()
        message = recorder.bad_config.call_args[0][1]
        assert message.startswith("Could not determine issuer for virtualserver due to bad configuration:")
        assert "failed to determine issuer name" in message
        store.get_certificate.assert_not_called()
        store.create_certificate.assert_not_called()
        store.list_certificates.assert_not_called()

    def test_conflicting_issuers(self, syncer, store, recorder):
        """Test that issuer and cluster-issuer together are rejected."""
        syncer.sync(make_virtual_server({"issuer": "a", "cluster-issuer": "b"}))

        recorder.bad_config.assert_called_once()
        store.create_certificate.assert_not_called()

    def test_invalid_annotation(self, syncer, store, recorder):
        """Test that invalid settings emit an event and propagate."""
        vs = make_virtual_server({"usages": "bogus"})

        with pytest.raises(InvalidAnnotationError):
            syncer.sync(vs)

        recorder.bad_config.assert_called_once()
        store.create_certificate.assert_not_called()
        store.update_certificate.assert_not_called()

    def test_store_error_propagates(self, syncer, store, recorder):
        """Test that API errors are raised to the caller."""
        store.create_certificate.side_effect = ApiException(status=500, reason="boom")

        with pytest.raises(ApiException):
            syncer.sync(make_virtual_server())

        recorder.certificate_created.assert_not_called()

    def test_cancelled(self, syncer, store):
        """Test that a cancelled pass stops before touching the store."""
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ReconcileCancelledError):
            syncer.sync(make_virtual_server(), cancel=cancel)

        store.get_certificate.assert_not_called()
        store.create_certificate.assert_not_called()

    def test_cancel_not_set(self, syncer, store):
        """Test that an unset cancel event does not interfere."""
        syncer.sync(make_virtual_server(), cancel=threading.Event())

        store.create_certificate.assert_called_once()


class TestEndToEnd:
    """End-to-end passes against a mocked store."""

    def make_vs1(self, cert_manager: dict[str, Any] | None = None) -> dict[str, Any]:
        tls: dict[str, Any] = {"secret": "example-tls"}
        if cert_manager is not None:
            tls["cert-manager"] = cert_manager
        return {
            "metadata": {"name": "vs1", "namespace": "default", "uid": "vs1-uid"},
            "spec": {"host": "example.com", "tls": tls},
        }

    def test_single_create_with_default_issuer(self, store, recorder):
        """Test that defaults alone produce one Certificate."""
        syncer = CertificateSyncer(store, recorder, IssuerRef("letsencrypt", "ClusterIssuer", ""))

        syncer.sync(self.make_vs1())

        store.create_certificate.assert_called_once()
        created = store.create_certificate.call_args[0][0]
        assert created["metadata"]["name"] == "example-tls"
        assert created["spec"]["dnsNames"] == ["example.com"]
        assert created["spec"]["issuerRef"] == {"name": "letsencrypt", "kind": "ClusterIssuer"}
        store.update_certificate.assert_not_called()

    def test_conflicting_overrides_write_nothing(self, store, recorder):
        """Test that issuer and cluster-issuer together make no writes."""
        syncer = CertificateSyncer(store, recorder, IssuerRef("letsencrypt", "ClusterIssuer", ""))

        syncer.sync(self.make_vs1({"issuer": "my-issuer", "clusterIssuer": "my-cluster-issuer"}))

        message = recorder.bad_config.call_args[0][1]
        assert "cert-manager.io/issuer" in message
        assert "cert-manager.io/cluster-issuer" in message
        store.create_certificate.assert_not_called()
        store.update_certificate.assert_not_called()
        store.delete_certificate.assert_not_called()

"""Tests for issuer resolution."""

from __future__ import annotations

from typing import Any

import pytest

from vs_cm_shim.issuer import resolve_issuer
from vs_cm_shim.models import IssuerRef
from vs_cm_shim.utils.errors import BadConfigError

DEFAULTS = IssuerRef(name="default-issuer", kind="Issuer", group="cert-manager.io")


def make_virtual_server(cert_manager: dict[str, Any] | None = None) -> dict[str, Any]:
    tls: dict[str, Any] = {"secret": "cafe-secret"}
    if cert_manager is not None:
        tls["cert-manager"] = cert_manager
    return {
        "metadata": {"name": "cafe", "namespace": "default"},
        "spec": {"host": "cafe.example.com", "tls": tls},
    }


class TestResolveIssuer:
    """Test cases for resolve_issuer."""

    def test_defaults_without_configuration(self):
        """Test that the defaults apply when nothing is configured."""
        assert resolve_issuer(DEFAULTS, make_virtual_server()) == DEFAULTS

    def test_issuer(self):
        """Test that issuer selects a namespaced Issuer."""
        ref = resolve_issuer(DEFAULTS, make_virtual_server({"issuer": "my-issuer"}))

        assert ref == IssuerRef(name="my-issuer", kind="Issuer", group="cert-manager.io")

    def test_cluster_issuer(self):
        """Test that cluster-issuer selects a ClusterIssuer."""
        ref = resolve_issuer(DEFAULTS, make_virtual_server({"cluster-issuer": "letsencrypt"}))

        assert ref.name == "letsencrypt"
        assert ref.kind == "ClusterIssuer"

    def test_issuer_kind_and_group_override(self):
        """Test that issuer-kind and issuer-group override an external issuer."""
        ref = resolve_issuer(
            DEFAULTS,
            make_virtual_server({
                "issuer": "aws-pca",
                "issuer-kind": "AWSPCAIssuer",
                "issuer-group": "awspca.cert-manager.io",
            }),
        )

        assert ref == IssuerRef(name="aws-pca", kind="AWSPCAIssuer", group="awspca.cert-manager.io")

    def test_kind_override_of_default(self):
        """Test that issuer-kind alone changes the default's kind."""
        ref = resolve_issuer(DEFAULTS, make_virtual_server({"issuer-kind": "ClusterIssuer"}))

        assert ref.name == "default-issuer"
        assert ref.kind == "ClusterIssuer"

    def test_camel_case_keys(self):
        """Test that camelCase keys are accepted."""
        ref = resolve_issuer(DEFAULTS, make_virtual_server({"clusterIssuer": "letsencrypt"}))

        assert ref.kind == "ClusterIssuer"

    def test_missing_name(self):
        """Test that an empty default and no issuer is a bad configuration."""
        with pytest.raises(BadConfigError) as exc_info:
            resolve_issuer(IssuerRef(name="", kind="Issuer"), make_virtual_server())

        assert exc_info.value.violations == [
            "failed to determine issuer name to be used for virtualserver resource"
        ]

    def test_issuer_and_cluster_issuer(self):
        """Test that issuer and cluster-issuer exclude each other."""
        with pytest.raises(BadConfigError) as exc_info:
            resolve_issuer(
                DEFAULTS, make_virtual_server({"issuer": "a", "cluster-issuer": "b"})
            )

        assert exc_info.value.violations == [
            'both "cert-manager.io/issuer" and "cert-manager.io/cluster-issuer" may not be set'
        ]

    def test_all_violations_reported(self):
        """Test that every violation is collected."""
        with pytest.raises(BadConfigError) as exc_info:
            resolve_issuer(
                DEFAULTS,
                make_virtual_server({
                    "issuer": "a",
                    "cluster-issuer": "b",
                    "issuer-kind": "Foo",
                    "issuer-group": "example.com",
                }),
            )

        violations = exc_info.value.violations
        assert len(violations) == 3
        assert 'both "cert-manager.io/cluster-issuer" and "cert-manager.io/issuer-group" may not be set' in violations
        assert 'both "cert-manager.io/cluster-issuer" and "cert-manager.io/issuer-kind" may not be set' in violations
        assert str(exc_info.value) == ", ".join(violations)

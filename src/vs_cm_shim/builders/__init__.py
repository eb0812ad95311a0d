"""Builders for resources created by the shim."""

from .certificate import CertificatePlan, build_certificate, build_certificates, certificate_needs_update

__all__ = [
    "CertificatePlan",
    "build_certificate",
    "build_certificates",
    "certificate_needs_update",
]

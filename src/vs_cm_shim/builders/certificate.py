"""Builder for the Certificate a VirtualServer requires."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    CM_API_VERSION,
    DEFAULT_KEY_USAGES,
    KIND_CERTIFICATE,
    KIND_VIRTUAL_SERVER,
)
from ..handlers.base import BaseHandler
from ..models import IssuerRef
from ..resources import (
    get_cert_manager_config,
    get_controller_of,
    get_host,
    get_secret_name,
    is_controlled_by,
    new_controller_ref,
)
from ..translator import config_to_annotations, translate_annotations

logger = logging.getLogger(__name__)


@dataclass
class CertificatePlan:
    """Store operations proposed for the Certificate of a VirtualServer."""

    new: list[dict[str, Any]] = field(default_factory=list)
    update: list[dict[str, Any]] = field(default_factory=list)
    # Existing Certificates not controlled by the VirtualServer, left untouched
    foreign: list[dict[str, Any]] = field(default_factory=list)


def build_certificate(virtual_server: dict[str, Any], issuer_ref: IssuerRef) -> dict[str, Any]:
    """Create the desired Certificate body from a VirtualServer.

    Args:
        virtual_server: VirtualServer body
        issuer_ref: Resolved issuer

    Returns:
        Certificate body

    Raises:
        InvalidAnnotationError: If the cert-manager block holds an
            unparsable duration or an unknown usage
    """
    meta = virtual_server.get("metadata", {})
    secret_name = get_secret_name(virtual_server)

    certificate = {
        "apiVersion": CM_API_VERSION,
        "kind": KIND_CERTIFICATE,
        "metadata": {
            "name": secret_name,
            "namespace": meta.get("namespace"),
            "labels": copy.deepcopy(meta.get("labels")),
            "ownerReferences": [new_controller_ref(virtual_server)],
        },
        "spec": {
            "dnsNames": [get_host(virtual_server)],
            "secretName": secret_name,
            "issuerRef": issuer_ref.as_dict(),
            "usages": list(DEFAULT_KEY_USAGES),
        },
    }

    annotations = config_to_annotations(get_cert_manager_config(virtual_server))
    translate_annotations(certificate, annotations)
    return certificate


def certificate_needs_update(existing: dict[str, Any], desired: dict[str, Any]) -> bool:
    """Check whether two Certificates differ in the fields the shim manages."""
    a_meta, b_meta = existing.get("metadata", {}), desired.get("metadata", {})
    a_spec, b_spec = existing.get("spec", {}), desired.get("spec", {})

    if a_meta.get("name") != b_meta.get("name"):
        return True

    # Labels added to a managed Certificate by hand are reset on update.
    if (a_meta.get("labels") or {}) != (b_meta.get("labels") or {}):
        return True

    if a_spec.get("commonName", "") != b_spec.get("commonName", ""):
        return True

    a_dns, b_dns = a_spec.get("dnsNames") or [], b_spec.get("dnsNames") or []
    if len(a_dns) != len(b_dns):
        return True
    for a_name, b_name in zip(a_dns, b_dns):
        if a_name != b_name:
            return True

    if a_spec.get("secretName") != b_spec.get("secretName"):
        return True

    a_issuer, b_issuer = a_spec.get("issuerRef") or {}, b_spec.get("issuerRef") or {}
    if a_issuer.get("name") != b_issuer.get("name"):
        return True
    if a_issuer.get("kind") != b_issuer.get("kind"):
        return True

    return False


def build_certificates(
    virtual_server: dict[str, Any],
    issuer_ref: IssuerRef,
    existing: dict[str, Any] | None,
    enforce_ownership: bool = True,
    log: BaseHandler | None = None,
) -> CertificatePlan:
    """Decide which Certificates to create or update for a VirtualServer.

    An existing Certificate with the secret's name is always proposed for
    update with the desired spec and labels, even when
    ``certificate_needs_update`` finds no difference.

    Args:
        virtual_server: VirtualServer body
        issuer_ref: Resolved issuer
        existing: Certificate currently stored under the secret's name
        enforce_ownership: Leave Certificates the VirtualServer does not
            control untouched instead of overwriting them
        log: Structured logger bound to VirtualServers

    Returns:
        The proposed creates and updates

    Raises:
        InvalidAnnotationError: If the cert-manager block is invalid
    """
    log = log or BaseHandler(KIND_VIRTUAL_SERVER, logger)
    plan = CertificatePlan()

    desired = build_certificate(virtual_server, issuer_ref)

    if existing is None:
        plan.new.append(desired)
        return plan

    crt_name = existing.get("metadata", {}).get("name")
    log.log_debug(
        virtual_server,
        "certificate already exists for this object, ensuring it is up to date",
        certificate=crt_name,
    )

    owned = True
    if get_controller_of(existing) is None:
        owned = False
        log.log_info(
            virtual_server,
            "certificate resource has no owner. refusing to update non-owned certificate resource for object",
            certificate=crt_name,
        )
    elif not is_controlled_by(existing, virtual_server):
        owned = False
        log.log_info(
            virtual_server,
            "certificate resource is not owned by this object. refusing to update non-owned certificate resource for object",
            certificate=crt_name,
        )

    if not owned and enforce_ownership:
        plan.foreign.append(existing)
        return plan

    if not certificate_needs_update(existing, desired):
        log.log_debug(
            virtual_server,
            "certificate resource is already up to date for object",
            certificate=crt_name,
        )

    update_crt = copy.deepcopy(existing)
    update_crt["spec"] = desired["spec"]
    update_crt.setdefault("metadata", {})["labels"] = desired["metadata"]["labels"]
    plan.update.append(update_crt)
    return plan

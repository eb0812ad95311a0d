"""Accessors for VirtualServer and Certificate bodies.

Both resources are handled as the plain dicts the Kubernetes client
returns for custom objects.
"""

from __future__ import annotations

from typing import Any

from .constants import KIND_VIRTUAL_SERVER, VS_API_VERSION
from .models import CertManagerConfig


def resource_key(body: dict[str, Any]) -> str:
    """Build the ``namespace/name`` work queue key of a resource."""
    meta = body.get("metadata", {})
    namespace = meta.get("namespace", "")
    name = meta.get("name", "")
    return f"{namespace}/{name}" if namespace else name


def split_key(key: str) -> tuple[str, str]:
    """Split a ``namespace/name`` key.

    Raises:
        ValueError: If the key is not of the expected form
    """
    parts = key.split("/")
    if len(parts) == 1 and parts[0]:
        return "", parts[0]
    if len(parts) == 2 and parts[1]:
        return parts[0], parts[1]
    raise ValueError(f"unexpected key format: {key!r}")


def get_tls(virtual_server: dict[str, Any]) -> dict[str, Any]:
    return virtual_server.get("spec", {}).get("tls") or {}


def get_host(virtual_server: dict[str, Any]) -> str:
    return virtual_server.get("spec", {}).get("host", "")


def get_secret_name(virtual_server: dict[str, Any]) -> str:
    """Secret name declared in the VirtualServer TLS block."""
    tls = get_tls(virtual_server)
    return tls.get("secret") or tls.get("secretName") or ""


def get_raw_cert_manager_block(virtual_server: dict[str, Any]) -> dict[str, Any] | None:
    tls = get_tls(virtual_server)
    if "cert-manager" in tls:
        return tls["cert-manager"]
    return tls.get("certManager")


def get_cert_manager_config(virtual_server: dict[str, Any]) -> CertManagerConfig:
    return CertManagerConfig.from_dict(get_raw_cert_manager_block(virtual_server))


def new_controller_ref(owner: dict[str, Any]) -> dict[str, Any]:
    """Build a controller owner reference pointing at a VirtualServer."""
    meta = owner.get("metadata", {})
    ref = {
        "apiVersion": owner.get("apiVersion", VS_API_VERSION),
        "kind": owner.get("kind", KIND_VIRTUAL_SERVER),
        "name": meta.get("name", ""),
        "controller": True,
        "blockOwnerDeletion": True,
    }
    if meta.get("uid"):
        ref["uid"] = meta["uid"]
    return ref


def get_controller_of(body: dict[str, Any]) -> dict[str, Any] | None:
    """Return the owner reference flagged as controller, if any."""
    for ref in body.get("metadata", {}).get("ownerReferences") or []:
        if ref.get("controller"):
            return ref
    return None


def is_controlled_by(body: dict[str, Any], owner: dict[str, Any]) -> bool:
    """Check whether ``owner`` is the controller of ``body``.

    Owner references carry no namespace; they only resolve within the
    namespace of the owned object. The uid is compared when both sides
    have one, otherwise kind and name decide.
    """
    ref = get_controller_of(body)
    if ref is None:
        return False

    owner_meta = owner.get("metadata", {})
    body_ns = body.get("metadata", {}).get("namespace")
    owner_ns = owner_meta.get("namespace")
    if body_ns and owner_ns and body_ns != owner_ns:
        return False

    owner_uid = owner_meta.get("uid")
    if owner_uid and ref.get("uid"):
        return ref["uid"] == owner_uid

    return (
        ref.get("kind") == owner.get("kind", KIND_VIRTUAL_SERVER)
        and ref.get("name") == owner_meta.get("name")
    )

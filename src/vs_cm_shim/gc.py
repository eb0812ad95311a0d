"""Garbage collection of Certificates a VirtualServer no longer requires."""

from __future__ import annotations

from typing import Any, Iterable

from .resources import get_secret_name, is_controlled_by


def required_secret_names(virtual_server: dict[str, Any]) -> set[str]:
    """Secret names the VirtualServer currently needs Certificates for."""
    secret_name = get_secret_name(virtual_server)
    return {secret_name} if secret_name else set()


def find_certificates_to_be_removed(
    certificates: Iterable[dict[str, Any]],
    virtual_server: dict[str, Any],
    required: set[str] | None = None,
) -> list[str]:
    """Find Certificates controlled by a VirtualServer that are unrequired.

    Certificates the VirtualServer does not control are never returned,
    whatever their secret name.

    Args:
        certificates: Certificates in the VirtualServer's namespace
        virtual_server: VirtualServer body
        required: Secret names still required, defaults to
            ``required_secret_names(virtual_server)``

    Returns:
        Names of the Certificates to delete
    """
    if required is None:
        required = required_secret_names(virtual_server)

    to_be_removed = []
    for crt in certificates:
        if not is_controlled_by(crt, virtual_server):
            continue
        if crt.get("spec", {}).get("secretName") not in required:
            to_be_removed.append(crt["metadata"]["name"])
    return to_be_removed

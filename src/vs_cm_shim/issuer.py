"""Resolution of the issuer a VirtualServer's Certificate references."""

from __future__ import annotations

from typing import Any

from .constants import (
    ANNOTATION_CLUSTER_ISSUER,
    ANNOTATION_ISSUER,
    ANNOTATION_ISSUER_GROUP,
    ANNOTATION_ISSUER_KIND,
    CLUSTER_ISSUER_KIND,
    ISSUER_KIND,
)
from .models import IssuerRef
from .resources import get_cert_manager_config
from .translator import issuer_annotations
from .utils.errors import BadConfigError


def resolve_issuer(defaults: IssuerRef, virtual_server: dict[str, Any]) -> IssuerRef:
    """Determine the issuer for the Certificate of a VirtualServer.

    Starts from the controller defaults and applies, in order, the
    ``issuer``, ``cluster-issuer``, ``issuer-kind`` and ``issuer-group``
    settings of the VirtualServer's cert-manager block.

    Args:
        defaults: Default issuer configured for the controller
        virtual_server: VirtualServer body

    Returns:
        The effective issuer reference

    Raises:
        BadConfigError: If no issuer name results, or settings that
            exclude each other are combined. Every violation is reported.
    """
    name, kind, group = defaults.name, defaults.kind, defaults.group

    annotations = issuer_annotations(get_cert_manager_config(virtual_server))

    issuer_set = ANNOTATION_ISSUER in annotations
    if issuer_set:
        name = annotations[ANNOTATION_ISSUER]
        kind = ISSUER_KIND

    cluster_issuer_set = ANNOTATION_CLUSTER_ISSUER in annotations
    if cluster_issuer_set:
        name = annotations[ANNOTATION_CLUSTER_ISSUER]
        kind = CLUSTER_ISSUER_KIND

    kind_set = ANNOTATION_ISSUER_KIND in annotations
    if kind_set:
        kind = annotations[ANNOTATION_ISSUER_KIND]

    group_set = ANNOTATION_ISSUER_GROUP in annotations
    if group_set:
        group = annotations[ANNOTATION_ISSUER_GROUP]

    violations: list[str] = []
    if not name:
        violations.append("failed to determine issuer name to be used for virtualserver resource")

    if issuer_set and cluster_issuer_set:
        violations.append(
            f'both "{ANNOTATION_ISSUER}" and "{ANNOTATION_CLUSTER_ISSUER}" may not be set'
        )

    if cluster_issuer_set and group_set:
        violations.append(
            f'both "{ANNOTATION_CLUSTER_ISSUER}" and "{ANNOTATION_ISSUER_GROUP}" may not be set'
        )

    if cluster_issuer_set and kind_set:
        violations.append(
            f'both "{ANNOTATION_CLUSTER_ISSUER}" and "{ANNOTATION_ISSUER_KIND}" may not be set'
        )

    if violations:
        raise BadConfigError(violations)

    return IssuerRef(name=name, kind=kind, group=group)

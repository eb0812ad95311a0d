"""Translation of VirtualServer cert-manager settings onto Certificates.

The structured ``spec.tls.cert-manager`` block of a VirtualServer is first
flattened into the annotation set an Ingress would carry, e.g.::

    cert-manager:
      common-name: example.com
      duration: 2160h
      renew-before: 1440h
      usages: "digital signature,key encipherment"

becomes::

    cert-manager.io/common-name: example.com
    cert-manager.io/duration: 2160h
    cert-manager.io/renew-before: 1440h
    cert-manager.io/usages: "digital signature,key encipherment"

and the annotation set is then applied to the Certificate spec.
"""

from __future__ import annotations

from typing import Any

from .constants import (
    ANNOTATION_CLUSTER_ISSUER,
    ANNOTATION_COMMON_NAME,
    ANNOTATION_DURATION,
    ANNOTATION_ISSUER,
    ANNOTATION_ISSUER_GROUP,
    ANNOTATION_ISSUER_KIND,
    ANNOTATION_RENEW_BEFORE,
    ANNOTATION_USAGES,
    EXT_KEY_USAGES,
    KEY_USAGES,
)
from .models import CertManagerConfig
from .utils.durations import format_duration, parse_duration
from .utils.errors import InvalidAnnotationError


def issuer_annotations(config: CertManagerConfig) -> dict[str, str]:
    """Annotations selecting the issuer of a Certificate."""
    annotations: dict[str, str] = {}
    if config.cluster_issuer:
        annotations[ANNOTATION_CLUSTER_ISSUER] = config.cluster_issuer
    if config.issuer:
        annotations[ANNOTATION_ISSUER] = config.issuer
    if config.issuer_kind:
        annotations[ANNOTATION_ISSUER_KIND] = config.issuer_kind
    if config.issuer_group:
        annotations[ANNOTATION_ISSUER_GROUP] = config.issuer_group
    return annotations


def config_to_annotations(config: CertManagerConfig) -> dict[str, str]:
    """Flatten a cert-manager block into an annotation set.

    Only non-empty fields produce a key.

    Args:
        config: Parsed cert-manager block

    Returns:
        Annotation set
    """
    annotations: dict[str, str] = {}
    if config.common_name:
        annotations[ANNOTATION_COMMON_NAME] = config.common_name
    if config.duration:
        annotations[ANNOTATION_DURATION] = config.duration
    if config.renew_before:
        annotations[ANNOTATION_RENEW_BEFORE] = config.renew_before
    if config.usages:
        annotations[ANNOTATION_USAGES] = config.usages
    annotations.update(issuer_annotations(config))
    return annotations


def _parse_duration_annotation(key: str, value: str) -> str:
    try:
        return format_duration(parse_duration(value))
    except ValueError as e:
        raise InvalidAnnotationError(key, str(e)) from e


def _parse_usages(value: str) -> list[str]:
    usages = []
    for usage_name in value.split(","):
        usage = usage_name.strip(" ")
        if usage not in KEY_USAGES and usage not in EXT_KEY_USAGES:
            raise InvalidAnnotationError(
                ANNOTATION_USAGES, f'invalid key usage name "{usage_name}"'
            )
        usages.append(usage)
    return usages


def translate_annotations(certificate: dict[str, Any], annotations: dict[str, str]) -> None:
    """Apply an annotation set to a Certificate body in place.

    Keys are applied in a fixed order (common name, duration, renew before,
    usages). When a value is rejected the keys before it have already been
    applied; callers discard the body on error.

    Args:
        certificate: Certificate body to update
        annotations: Annotation set produced by ``config_to_annotations``

    Raises:
        ValueError: If no certificate is given
        InvalidAnnotationError: If a duration or usage value is invalid
    """
    if certificate is None:
        raise ValueError("the supplied Certificate was None")

    spec = certificate.setdefault("spec", {})

    if ANNOTATION_COMMON_NAME in annotations:
        spec["commonName"] = annotations[ANNOTATION_COMMON_NAME]

    if ANNOTATION_DURATION in annotations:
        spec["duration"] = _parse_duration_annotation(
            ANNOTATION_DURATION, annotations[ANNOTATION_DURATION]
        )

    if ANNOTATION_RENEW_BEFORE in annotations:
        spec["renewBefore"] = _parse_duration_annotation(
            ANNOTATION_RENEW_BEFORE, annotations[ANNOTATION_RENEW_BEFORE]
        )

    if ANNOTATION_USAGES in annotations:
        spec["usages"] = _parse_usages(annotations[ANNOTATION_USAGES])

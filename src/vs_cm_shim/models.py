"""Models for VirtualServer TLS configuration and issuer references."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any


# Field aliases accepted in spec.tls.cert-manager, keyed by model attribute
_CONFIG_ALIASES = {
    "common_name": ("common-name", "commonName"),
    "duration": ("duration",),
    "renew_before": ("renew-before", "renewBefore"),
    "usages": ("usages",),
    "issuer": ("issuer",),
    "cluster_issuer": ("cluster-issuer", "clusterIssuer"),
    "issuer_kind": ("issuer-kind", "issuerKind"),
    "issuer_group": ("issuer-group", "issuerGroup"),
}


@dataclass(frozen=True)
class CertManagerConfig:
    """cert-manager settings declared in a VirtualServer's TLS block."""

    common_name: str = ""
    duration: str = ""
    renew_before: str = ""
    usages: str = ""
    issuer: str = ""
    cluster_issuer: str = ""
    issuer_kind: str = ""
    issuer_group: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CertManagerConfig:
        """Create a config from the raw ``cert-manager`` block.

        Args:
            data: Raw block, may be None when the VirtualServer has none

        Returns:
            Parsed configuration, empty when ``data`` is empty
        """
        if not data:
            return cls()

        values: dict[str, str] = {}
        for field in fields(cls):
            for alias in _CONFIG_ALIASES[field.name]:
                value = data.get(alias)
                if value:
                    # usages may arrive as a YAML list
                    if isinstance(value, (list, tuple)):
                        value = ",".join(str(v) for v in value)
                    values[field.name] = str(value)
                    break
        return cls(**values)


@dataclass(frozen=True)
class IssuerRef:
    """Reference to the issuer a Certificate is signed by."""

    name: str
    kind: str
    group: str = ""

    def as_dict(self) -> dict[str, str]:
        """Render as a Certificate ``spec.issuerRef`` body."""
        ref = {"name": self.name, "kind": self.kind}
        if self.group:
            ref["group"] = self.group
        return ref

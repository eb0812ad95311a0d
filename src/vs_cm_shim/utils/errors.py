"""Error types and Kubernetes API error helpers."""

from __future__ import annotations

from kubernetes.client.exceptions import ApiException


class ShimError(Exception):
    """Base class for errors raised by the shim."""


class PermanentError(ShimError):
    """An error that retrying the same input cannot fix."""


class BadConfigError(ShimError):
    """Issuer configuration on a VirtualServer is unusable.

    Args:
        violations: Every rule the configuration breaks
    """

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__(", ".join(self.violations))


class InvalidAnnotationError(PermanentError):
    """A cert-manager setting could not be translated onto a Certificate.

    Args:
        key: Annotation key being translated
        detail: Why the value was rejected
    """

    def __init__(self, key: str, detail: str):
        self.key = key
        self.detail = detail
        super().__init__(f'invalid annotation "{key}": {detail}')


class ReconcileCancelledError(ShimError):
    """Reconciliation was interrupted before finishing."""


def is_not_found(error: BaseException) -> bool:
    """Check whether an exception is a 404 from the API server."""
    return isinstance(error, ApiException) and error.status == 404


def is_conflict(error: BaseException) -> bool:
    """Check whether an exception is a 409 from the API server."""
    return isinstance(error, ApiException) and error.status == 409

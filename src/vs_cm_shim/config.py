"""Process-wide settings of the shim, read from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .constants import CM_GROUP, ISSUER_KIND
from .models import IssuerRef

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None or value == "":
        return default
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def _get_number(env: Mapping[str, str], key: str, default: float, cast: type = float) -> float:
    value = env.get(key)
    if value is None or value == "":
        return default
    try:
        number = cast(value)
    except ValueError as e:
        raise ValueError(f"{key} must be a number, got {value!r}") from e
    if number < 0:
        raise ValueError(f"{key} must not be negative, got {value!r}")
    return number


@dataclass(frozen=True)
class ShimOptions:
    """Settings fixed for the lifetime of the process.

    Environment Variables:
        DEFAULT_ISSUER_NAME: Issuer used when a VirtualServer names none
        DEFAULT_ISSUER_KIND: Kind of the default issuer (default: Issuer)
        DEFAULT_ISSUER_GROUP: Group of the default issuer (default: cert-manager.io)
        WORKER_COUNT: Number of reconciliation workers (default: 2)
        ENFORCE_CERTIFICATE_OWNERSHIP: Leave Certificates controlled by
            something else untouched and emit a ForeignlyOwned warning
            (default: true). Set to false to log and overwrite them anyway,
            as the shim did before the ownership gate existed
        QUEUE_BASE_DELAY_SECONDS: First retry delay (default: 0.005)
        QUEUE_MAX_DELAY_SECONDS: Retry delay cap (default: 1000)
        K8S_REQUEST_TIMEOUT_SECONDS: Timeout of API requests (default: 30)
        METRICS_PORT: Port of the metrics and health server (default: 8080)
    """

    default_issuer_name: str = ""
    default_issuer_kind: str = ISSUER_KIND
    default_issuer_group: str = CM_GROUP
    worker_count: int = 2
    enforce_ownership: bool = True
    queue_base_delay: float = 0.005
    queue_max_delay: float = 1000.0
    request_timeout: float = 30.0
    metrics_port: int = 8080

    @property
    def default_issuer(self) -> IssuerRef:
        return IssuerRef(
            name=self.default_issuer_name,
            kind=self.default_issuer_kind,
            group=self.default_issuer_group,
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ShimOptions:
        """Build options from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``

        Raises:
            ValueError: If a numeric or boolean variable is malformed
        """
        env = os.environ if env is None else env
        worker_count = int(_get_number(env, "WORKER_COUNT", cls.worker_count, int))
        if worker_count < 1:
            raise ValueError("WORKER_COUNT must be at least 1")
        return cls(
            default_issuer_name=env.get("DEFAULT_ISSUER_NAME", cls.default_issuer_name),
            default_issuer_kind=env.get("DEFAULT_ISSUER_KIND", cls.default_issuer_kind),
            default_issuer_group=env.get("DEFAULT_ISSUER_GROUP", cls.default_issuer_group),
            worker_count=worker_count,
            enforce_ownership=_get_bool(env, "ENFORCE_CERTIFICATE_OWNERSHIP", cls.enforce_ownership),
            queue_base_delay=_get_number(env, "QUEUE_BASE_DELAY_SECONDS", cls.queue_base_delay),
            queue_max_delay=_get_number(env, "QUEUE_MAX_DELAY_SECONDS", cls.queue_max_delay),
            request_timeout=_get_number(env, "K8S_REQUEST_TIMEOUT_SECONDS", cls.request_timeout),
            metrics_port=int(_get_number(env, "METRICS_PORT", cls.metrics_port, int)),
        )

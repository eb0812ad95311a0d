"""Access to VirtualServers and Certificates in the Kubernetes API."""

from __future__ import annotations

import time
from typing import Any, Callable

from kubernetes import client

from . import metrics
from .constants import (
    CERTIFICATE_PLURAL,
    CM_GROUP,
    CM_VERSION,
    VS_GROUP,
    VS_PLURAL,
    VS_VERSION,
)
from .utils.errors import is_not_found
from .utils.rate_limit import rate_limit_k8s, retry_on_rate_limit


class KubernetesStore:
    """Reads VirtualServers and reads/writes Certificates.

    Every call is rate limited, retried on API rate limit responses and
    recorded in the API call metrics. Other API errors propagate.
    """

    def __init__(self, api: client.CustomObjectsApi, request_timeout: float = 30.0):
        """Initialize the store.

        Args:
            api: Kubernetes CustomObjectsApi instance
            request_timeout: Timeout of a single API request in seconds
        """
        self.api = api
        self.request_timeout = request_timeout

    def _call(self, operation: str, method: Callable[..., Any], **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = retry_on_rate_limit(
                lambda: rate_limit_k8s(method)(_request_timeout=self.request_timeout, **kwargs)
            )
            metrics.api_call_total.labels(operation=operation, result="success").inc()
            return result
        except Exception as e:
            result_label = "not_found" if is_not_found(e) else "error"
            metrics.api_call_total.labels(operation=operation, result=result_label).inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(operation=operation).observe(duration)

    def get_virtual_server(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a VirtualServer.

        Raises:
            client.exceptions.ApiException: If not found or API error
        """
        return self._call(
            "get_virtual_server",
            self.api.get_namespaced_custom_object,
            group=VS_GROUP,
            version=VS_VERSION,
            namespace=namespace,
            plural=VS_PLURAL,
            name=name,
        )

    def get_certificate(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Get a Certificate, or None if it does not exist."""
        try:
            return self._call(
                "get_certificate",
                self.api.get_namespaced_custom_object,
                group=CM_GROUP,
                version=CM_VERSION,
                namespace=namespace,
                plural=CERTIFICATE_PLURAL,
                name=name,
            )
        except client.exceptions.ApiException as e:
            if is_not_found(e):
                return None
            raise

    def list_certificates(
        self,
        namespace: str,
        label_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """List Certificates in a namespace.

        Args:
            namespace: Namespace to list
            label_selector: Optional label selector, e.g. ``app=web``

        Returns:
            Certificate bodies
        """
        kwargs: dict[str, Any] = {}
        if label_selector:
            kwargs["label_selector"] = label_selector
        response = self._call(
            "list_certificates",
            self.api.list_namespaced_custom_object,
            group=CM_GROUP,
            version=CM_VERSION,
            namespace=namespace,
            plural=CERTIFICATE_PLURAL,
            **kwargs,
        )
        return list(response.get("items", []))

    def create_certificate(self, certificate: dict[str, Any]) -> dict[str, Any]:
        return self._call(
            "create_certificate",
            self.api.create_namespaced_custom_object,
            group=CM_GROUP,
            version=CM_VERSION,
            namespace=certificate["metadata"]["namespace"],
            plural=CERTIFICATE_PLURAL,
            body=certificate,
        )

    def update_certificate(self, certificate: dict[str, Any]) -> dict[str, Any]:
        """Replace a Certificate.

        The body's resourceVersion is sent along, so a concurrent write
        surfaces as a 409 conflict.
        """
        return self._call(
            "update_certificate",
            self.api.replace_namespaced_custom_object,
            group=CM_GROUP,
            version=CM_VERSION,
            namespace=certificate["metadata"]["namespace"],
            plural=CERTIFICATE_PLURAL,
            name=certificate["metadata"]["name"],
            body=certificate,
        )

    def delete_certificate(self, namespace: str, name: str) -> None:
        self._call(
            "delete_certificate",
            self.api.delete_namespaced_custom_object,
            group=CM_GROUP,
            version=CM_VERSION,
            namespace=namespace,
            plural=CERTIFICATE_PLURAL,
            name=name,
        )


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client.

    Returns:
        CustomObjectsApi instance
    """
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CustomObjectsApi()

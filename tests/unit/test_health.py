"""Tests for health check endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock

from vs_cm_shim import metrics  # noqa: F401
from vs_cm_shim.health import create_combined_wsgi_app


def make_environ(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SCRIPT_NAME": "",
        "QUERY_STRING": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
    }


class TestCombinedWsgiApp:
    """Test cases for the combined metrics and health app."""

    def test_healthz(self):
        """Test /healthz endpoint."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        result = app(make_environ("/healthz"), start_response)

        assert b'"status":"ok"' in b"".join(result)
        assert "200" in start_response.call_args[0][0]

    def test_readyz_ready(self):
        """Test /readyz endpoint when ready."""
        app = create_combined_wsgi_app(lambda: True)
        start_response = MagicMock()

        result = app(make_environ("/readyz"), start_response)

        assert b'"status":"ready"' in b"".join(result)
        assert "200" in start_response.call_args[0][0]

    def test_readyz_not_ready(self):
        """Test /readyz endpoint while workers are not running."""
        app = create_combined_wsgi_app(lambda: False)
        start_response = MagicMock()

        result = app(make_environ("/readyz"), start_response)

        assert b'"status":"not ready"' in b"".join(result)
        assert "503" in start_response.call_args[0][0]

    def test_metrics(self):
        """Test that /metrics is served by prometheus."""
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        result = app(make_environ("/metrics"), start_response)

        assert b"vs_cm_shim_reconcile_duration_seconds" in b"".join(result)
        assert "200" in start_response.call_args[0][0]

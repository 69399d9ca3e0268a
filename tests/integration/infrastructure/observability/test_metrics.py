"""Integration tests for Prometheus metrics.

Tests that metrics are correctly recorded and exposed via /metrics endpoint.
"""

import pytest
from fastapi.testclient import TestClient

from src.infrastructure.api.main import create_app
from src.infrastructure.observability import metrics


@pytest.fixture
def app():
    """Create FastAPI app for testing."""
    return create_app()


@pytest.fixture
def client(app):
    """Create test client (lifespan not started: no catalog module needed)."""
    return TestClient(app)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    def test_metrics_endpoint_returns_prometheus_format(self, client):
        """Test that /metrics endpoint returns Prometheus exposition format."""
        response = client.get("/api/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

        content = response.text
        assert "dashops_catalog_http_requests_total" in content
        assert "dashops_catalog_http_request_duration_seconds" in content

    def test_metrics_recorded_with_route_template(self, client):
        """Test that HTTP requests are recorded under their route template."""
        response = client.get("/api/health")
        assert response.status_code == 200

        content = client.get("/api/metrics").text

        assert 'endpoint="/api/health"' in content
        assert 'method="GET"' in content
        assert 'status_code="200"' in content

    def test_unmatched_paths_share_one_label(self, client):
        response = client.get("/api/service-catalog/nope/really-not-here")
        assert response.status_code == 404

        content = client.get("/api/metrics").text

        assert 'endpoint="unmatched"' in content
        assert "really-not-here" not in content


class TestMetricsRecording:
    """Tests for metric recording functions."""

    def _content(self) -> str:
        content, _ = metrics.get_metrics_content()
        return content.decode("utf-8")

    def test_record_http_request(self):
        """Test HTTP request metric recording."""
        metrics.record_http_request(
            method="POST",
            endpoint="/api/service-catalog/services",
            status_code=201,
            duration=0.123,
        )

        assert 'endpoint="/api/service-catalog/services"' in self._content()

    def test_record_catalog_mutation(self):
        metrics.record_catalog_mutation("create", "failed")

        content = self._content()
        assert "dashops_catalog_mutations_total" in content
        assert 'action="create"' in content
        assert 'history="failed"' in content

    def test_update_catalog_size(self):
        metrics.update_catalog_size(7)

        assert "dashops_catalog_services 7.0" in self._content()

    def test_record_kubernetes_call(self):
        metrics.record_kubernetes_call("get_deployment", "not_found")

        content = self._content()
        assert "dashops_catalog_kubernetes_calls_total" in content
        assert 'outcome="not_found"' in content

    def test_record_health_evaluation(self):
        """Test health aggregation metric recording."""
        metrics.record_health_evaluation("critical", "TIER-1", 0.2)

        content = self._content()
        assert 'overall_status="critical"' in content
        assert 'tier="TIER-1"' in content
        assert "dashops_catalog_health_evaluation_duration_seconds" in content

"""Tests for FastAPI main application."""

import pytest
from fastapi.testclient import TestClient

from keyswitch_api.main import app


@pytest.fixture
def client():
    """Create test client."""
    with TestClient(app) as client:
        yield client


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test basic health check."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["catalog_source"] == "seed"
        assert data["catalog_products"] > 0
        assert "version" in data

    def test_health_check_v1(self, client):
        """Test v1 health endpoint."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert "status" in response.json()


class TestStructureEndpoint:
    """Tests for the structuring endpoint."""

    def test_structure_single_item(self, client):
        """Test structuring a single item answer."""
        response = client.post(
            "/api/v1/responses/structure",
            json={
                "markdown": "# Cherry MX Red\nLinear switch, 45g actuation.",
                "responseType": "single_item_info",
                "metadata": {"requestId": "req-1"},
            },
        )
        assert response.status_code == 200

        data = response.json()
        assert data["responseType"] == "single_item_info"
        assert data["data"]["title"] == "Cherry MX Red"
        assert data["data"]["itemName"] == "Cherry MX Red"
        assert data["metadata"] == {"requestId": "req-1"}
        assert data["version"] == "1.0.0"
        assert "generatedAt" in data

    def test_structure_fallback_is_200(self, client):
        """Test unusable markdown still answers with a fallback."""
        response = client.post(
            "/api/v1/responses/structure",
            json={"markdown": "", "responseType": "comparison"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["responseType"] == "comparison"
        assert data["metadata"]["processingMode"] == "fallback"
        assert data["metadata"]["confidence"] == 0
        assert data["metadata"]["warnings"]

    def test_structure_unknown_type(self, client):
        """Test an unknown response type falls back to a standard answer."""
        response = client.post(
            "/api/v1/responses/structure",
            json={"markdown": "Some answer about switches.", "responseType": "keycap_review"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["responseType"] == "standard_answer"
        assert data["metadata"]["errorKind"] == "UNKNOWN_RESPONSE_TYPE"

    def test_structure_snake_case_fields(self, client):
        """Test request fields are also accepted in snake_case."""
        response = client.post(
            "/api/v1/responses/structure",
            json={"markdown": "Linear switches are smooth.", "response_type": "standard_answer"},
        )
        assert response.status_code == 200
        assert response.json()["responseType"] == "standard_answer"

    def test_structure_missing_response_type(self, client):
        """Test request validation for a missing response type."""
        response = client.post("/api/v1/responses/structure", json={"markdown": "text"})
        assert response.status_code == 422


class TestMiddleware:
    """Tests for tracing and metrics."""

    def test_trace_id_echoed(self, client):
        """Test a caller trace ID is echoed back."""
        response = client.get("/health", headers={"X-Trace-ID": "trace-123"})
        assert response.headers["X-Trace-ID"] == "trace-123"

    def test_trace_id_generated(self, client):
        """Test a trace ID is generated when none is sent."""
        response = client.get("/health")
        assert len(response.headers["X-Trace-ID"]) == 32

    def test_metrics_endpoint(self, client):
        """Test Prometheus metrics are exposed."""
        client.post(
            "/api/v1/responses/structure",
            json={"markdown": "", "responseType": "standard_answer"},
        )
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "structured_parse_total" in response.text

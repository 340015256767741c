"""Health check and basic app tests."""
import pytest

from sitecms.middleware.metrics import area_of, reset_metrics


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


@pytest.mark.asyncio
async def test_openapi_docs(client):
    response = await client.get("/docs")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_openapi_schema(client):
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "Site CMS API"
    assert schema["info"]["version"] == "0.1.0"
    paths = schema["paths"]
    assert "/api/v1/contact" in paths
    assert "/api/v1/resource-categories/{slug}/breadcrumb" in paths
    assert "/api/v1/admin/resources/{resource_id}/seo-score" in paths


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_metrics_endpoint_counts_requests(client):
    reset_metrics()
    await client.get("/api/v1/faqs")
    await client.get("/api/v1/faqs")

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert 'http_requests_by_area{area="faqs",status="2xx"} 2' in response.text
    assert "http_requests_total 2" in response.text


def test_area_of_groups_paths():
    assert area_of("/api/v1/faqs/some-slug") == "faqs"
    assert area_of("/api/v1/admin/resource-categories/x") == "admin/resource-categories"
    assert area_of("/health") == "other"


@pytest.mark.asyncio
async def test_readiness_reports_backends(client):
    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "ok", "cache": "memory"}

"""Health and metrics endpoint tests."""

import pytest
from httpx import AsyncClient

from shortlinks.enums import HealthStatus


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["database"] == HealthStatus.HEALTHY.value


@pytest.mark.asyncio
async def test_metrics_exposed_without_api_key(client: AsyncClient) -> None:
    response = await client.get("/api/metrics")
    assert response.status_code == 200
    assert "shortlinks_redirects_total" in response.text

"""Health and metrics endpoint tests."""

import pytest
from httpx import AsyncClient

from linkshort.enums import HealthStatus


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["database"] == HealthStatus.HEALTHY.value


@pytest.mark.asyncio
async def test_metrics_expose_error_counters(container, client: AsyncClient) -> None:
    await client.post("/_create", json={"long_url": "https://lemurs.win", "secret": "nope"})
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "auth_error_count_total 1.0" in response.text
    assert "random_error_count_total 0.0" in response.text
    assert "db_update_error_count_total 0.0" in response.text


@pytest.mark.asyncio
async def test_startup_requires_secret(serve) -> None:
    with pytest.raises(RuntimeError):
        async with serve(SECRET=""):
            pass


@pytest.mark.asyncio
async def test_docs_page_keeps_html_content_type(client: AsyncClient) -> None:
    response = await client.get("/docs")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")

"""
Integration Tests - HTTP API
"""
from unittest.mock import AsyncMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.serving.api import create_api_app


class TestAnalyticsRoutes:

    async def test_customer_spending(self, api_client):
        response = await api_client.get("/api/v1/analytics/customers/C1/spending")

        assert response.status_code == 200
        body = response.json()
        assert body["totalSpent"] == 200.0
        assert body["averageOrderValue"] == 100.0

    async def test_customer_spending_absent(self, api_client):
        response = await api_client.get("/api/v1/analytics/customers/C3/spending")

        assert response.status_code == 200
        assert response.json() is None

    async def test_top_selling_default_limit(self, api_client):
        response = await api_client.get("/api/v1/analytics/products/top-selling")

        assert response.status_code == 200
        assert [p["productId"] for p in response.json()] == ["P2", "P1"]

    async def test_sales(self, api_client):
        response = await api_client.get(
            "/api/v1/analytics/sales",
            params={"start_date": "2024-03-10", "end_date": "2024-03-10"},
        )

        assert response.status_code == 200
        assert response.json()["completedOrders"] == 1

    async def test_sales_invalid_date(self, api_client):
        response = await api_client.get(
            "/api/v1/analytics/sales",
            params={"start_date": "2024-13-01", "end_date": "2024-03-10"},
        )

        assert response.status_code == 400
        assert response.json()["field"] == "startDate"

    async def test_customer_orders_pagination(self, api_client):
        response = await api_client.get(
            "/api/v1/analytics/customers/C1/orders",
            params={"page": 5, "limit": 1},
        )

        assert response.status_code == 200
        assert response.json() == {"orders": [], "totalPages": 2, "currentPage": 5}

    async def test_customer_orders_zero_limit(self, api_client):
        response = await api_client.get(
            "/api/v1/analytics/customers/C1/orders",
            params={"page": 1, "limit": 0},
        )

        assert response.status_code == 400

    async def test_request_id_echoed(self, api_client):
        response = await api_client.get("/api/v1/health/live", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestGraphQLEndpoint:

    async def test_query_over_http(self, api_client):
        response = await api_client.post(
            "/graphql",
            json={"query": "{ getTopSellingProducts(limit: 1) { productId totalSold } }"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["getTopSellingProducts"] == [{"productId": "P2", "totalSold": 5}]


class TestHealth:

    async def test_health_reports_database_and_disabled_cache(self, api_client):
        response = await api_client.get("/api/v1/health")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["cache"] == {"status": "disabled"}

    async def test_ready(self, api_client):
        response = await api_client.get("/api/v1/health/ready")

        assert response.json() == {"status": "ready"}


class TestHealthFailures:
    """Failing dependencies are reported by status only"""

    @pytest.fixture
    async def app(self, test_settings, seeded_database):
        app = create_api_app(test_settings)
        async with app.router.lifespan_context(app):
            yield app

    async def test_unreachable_cache_hides_detail(self, app):
        app.state.redis = AsyncMock()
        app.state.redis.ping.side_effect = RedisConnectionError("Error 111 connecting to 10.0.0.7:6379")

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            body = (await client.get("/api/v1/health")).json()

        assert body["status"] == "degraded"
        assert body["checks"]["cache"] == {"status": "unhealthy"}
        assert "10.0.0.7" not in str(body)

    async def test_closed_database_hides_detail(self, app):
        await app.state.database.close()

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            health = await client.get("/api/v1/health")
            ready = await client.get("/api/v1/health/ready")

        assert health.json()["checks"]["database"] == {"status": "unhealthy"}
        assert ready.status_code == 503
        assert ready.json() == {"status": "not_ready", "reason": "database_unavailable"}

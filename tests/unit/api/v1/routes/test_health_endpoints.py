from httpx import AsyncClient


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_health_check(self, anonymous_client: AsyncClient):
        """Test health check endpoint."""
        response = await anonymous_client.get("/api/v1/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "quota-station"}

    async def test_db_health_check(self, anonymous_client: AsyncClient):
        """Both stores are reachable."""
        response = await anonymous_client.get("/api/v1/health/db")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["platform"] == "connected"
        assert data["ledger"] == "connected"

    async def test_root_healthz(self, anonymous_client: AsyncClient):
        response = await anonymous_client.get("/healthz")
        assert response.status_code == 200

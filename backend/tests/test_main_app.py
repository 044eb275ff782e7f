"""
应用入口与中间件测试
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestHealth:
    """健康检查"""

    async def test_health(self, client: AsyncClient, directory_service):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["root"] == str(directory_service.root)
        assert "timestamp" in data

    async def test_api_status(self, client: AsyncClient):
        resp = await client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["storage"]["writable"] is True
        assert data["storage"]["isCustom"] is False

    async def test_root(self, client: AsyncClient):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["docs"] == "/api/docs"


@pytest.mark.asyncio
class TestMiddleware:
    """中间件测试"""

    async def test_api_cache_control_headers(self, client: AsyncClient):
        """API 路径禁用浏览器缓存"""
        response = await client.get("/api/status")

        cc = response.headers.get("Cache-Control", "")
        assert "no-cache" in cc
        assert "no-store" in cc
        assert response.headers.get("Pragma") == "no-cache"

    async def test_security_headers(self, client: AsyncClient):
        response = await client.get("/api/status")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"

    async def test_non_api_no_cache_control(self, client: AsyncClient):
        response = await client.get("/health")
        assert "no-store" not in response.headers.get("Cache-Control", "")

    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/api/status")
        assert len(response.headers.get("X-Request-ID", "")) == 8
        assert response.headers.get("X-Response-Time", "").endswith("ms")

    async def test_health_skips_request_logging(self, client: AsyncClient):
        response = await client.get("/health")
        assert "X-Request-ID" not in response.headers

    async def test_error_requests_logged(self, client: AsyncClient, caplog):
        with caplog.at_level("WARNING", logger="core.middleware"):
            response = await client.get("/api/files")
        assert response.status_code == 401
        assert any("[请求错误]" in r.getMessage() for r in caplog.records)

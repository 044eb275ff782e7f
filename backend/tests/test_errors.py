"""
错误处理模块测试
"""
import pytest
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from httpx import AsyncClient, ASGITransport
from pydantic import BaseModel

from core.errors import (
    ErrorCode,
    AppException,
    BadRequestException,
    ValidationException,
    AuthException,
    NotFoundException,
    ConflictException,
    PayloadTooLargeException,
    PathOutsideRootException,
    FileSystemException,
    ERROR_MESSAGES,
    register_exception_handlers
)


class TestErrors:
    """错误处理测试"""

    def test_error_codes(self):
        """测试错误码定义"""
        assert ErrorCode.SUCCESS == 0
        assert ErrorCode.INTERNAL_ERROR == 1000
        assert ErrorCode.UNAUTHORIZED == 2001

    def test_app_exception(self):
        """测试应用异常基类"""
        exc = AppException(code=ErrorCode.RESOURCE_NOT_FOUND)
        assert exc.http_status == status.HTTP_404_NOT_FOUND
        assert exc.message == ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND]

        d = exc.to_dict()
        assert d == {"code": ErrorCode.RESOURCE_NOT_FOUND, "message": "Resource not found", "data": None}

        resp = exc.to_response()
        assert isinstance(resp, JSONResponse)
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_specific_exceptions(self):
        """测试具体异常类对应的状态码"""
        assert BadRequestException().http_status == 400
        assert ValidationException(errors=["e1"]).data["errors"] == ["e1"]
        assert AuthException().http_status == 401
        assert AuthException().headers["WWW-Authenticate"] == "Bearer"
        assert NotFoundException("File not found").message == "File not found"
        assert ConflictException().http_status == 409
        assert PayloadTooLargeException(max_size=10).http_status == 413
        assert PayloadTooLargeException(max_size=10).data == {"maxSize": 10}
        assert FileSystemException().http_status == 500

    def test_path_outside_root(self):
        """越界路径与不存在的路径一样返回 404"""
        exc = PathOutsideRootException("../etc/passwd")
        assert exc.http_status == 404
        assert exc.message == "Path not found"
        assert exc.data == {"path": "../etc/passwd"}


class Item(BaseModel):
    name: str


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/app-error")
    async def app_error():
        raise ConflictException("Directory already exists")

    @app.post("/items")
    async def create_item(item: Item):
        return item

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    return app


@pytest.mark.asyncio
class TestExceptionHandlers:
    """异常处理器测试"""

    async def _client(self) -> AsyncClient:
        transport = ASGITransport(app=_build_app(), raise_app_exceptions=False)
        return AsyncClient(transport=transport, base_url="http://test")

    async def test_app_exception_response(self):
        async with await self._client() as ac:
            resp = await ac.get("/app-error")
        assert resp.status_code == 409
        assert resp.json() == {
            "code": ErrorCode.RESOURCE_CONFLICT,
            "message": "Directory already exists",
            "data": None
        }

    async def test_validation_error_is_400(self):
        async with await self._client() as ac:
            resp = await ac.post("/items", json={})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == ErrorCode.VALIDATION_ERROR
        assert body["data"]["errors"][0]["field"].endswith("name")

    async def test_unknown_route_is_404(self):
        async with await self._client() as ac:
            resp = await ac.get("/missing")
        assert resp.status_code == 404
        assert resp.json()["code"] == ErrorCode.RESOURCE_NOT_FOUND

    async def test_unhandled_exception_is_500(self):
        async with await self._client() as ac:
            resp = await ac.get("/crash")
        assert resp.status_code == 500
        assert resp.json()["message"] == "Server error"

"""
中间件模块
请求日志与安全响应头
"""

import time
import uuid
import logging
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

DEFAULT_SKIP_PATHS = ("/health", "/api/docs", "/api/redoc", "/api/openapi.json", "/favicon.ico")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件
    只记录慢请求与错误请求，并为响应附加请求ID和耗时
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths: Optional[Iterable[str]] = None,
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        self.skip_paths = tuple(skip_paths) if skip_paths else DEFAULT_SKIP_PATHS
        self.slow_request_threshold = slow_request_threshold

    def _should_skip(self, path: str) -> bool:
        return path.startswith(self.skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._should_skip(request.url.path):
            return await call_next(request)

        request_id = uuid.uuid4().hex[:8]
        method, path = request.method, request.url.path
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(f"[请求异常] {method} {path} | {duration_ms}ms | {e}")
            raise

        # 流式响应（如打包下载）这里只统计到响应头发出为止
        duration = time.perf_counter() - start_time
        duration_ms = round(duration * 1000, 2)

        if duration > self.slow_request_threshold:
            logger.warning(f"[慢请求] {method} {path} | {response.status_code} | {duration_ms}ms")
        elif response.status_code >= 400:
            logger.warning(f"[请求错误] {method} {path} | {response.status_code} | {duration_ms}ms")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """安全响应头中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # API 响应禁止缓存，列表与配置变更后立即可见
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"

        return response

"""
标准错误码体系
提供统一的错误码定义和异常处理
"""

import logging
from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证/授权错误
    - 3xxx: 业务通用错误
    - 4xxx: 文件管理错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误
    CONFIG_ERROR = 1003             # 配置错误
    FILE_SYSTEM_ERROR = 1007        # 文件系统错误

    # ==================== 认证/授权错误 (2xxx) ====================
    UNAUTHORIZED = 2001             # 未认证（未携带令牌）
    TOKEN_INVALID = 2003            # 令牌无效或已过期
    PERMISSION_DENIED = 2004        # 权限不足
    LOGIN_FAILED = 2007             # 登录失败
    ACCOUNT_NOT_FOUND = 2009        # 账户不存在
    ACCOUNT_EXISTS = 2010           # 账户已存在

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在
    RESOURCE_CONFLICT = 3004        # 资源冲突
    INVALID_OPERATION = 3006        # 无效操作
    FILE_TOO_LARGE = 3009           # 文件过大
    FILE_TYPE_NOT_ALLOWED = 3010    # 文件类型不允许

    # ==================== 文件管理错误 (4xxx) ====================
    INVALID_DIRECTORY = 4001        # 目录配置无效
    PATH_OUTSIDE_ROOT = 4002        # 路径越界


# 错误码对应的默认消息
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "Success",

    # 系统级
    ErrorCode.INTERNAL_ERROR: "Server error",
    ErrorCode.CONFIG_ERROR: "Server configuration error",
    ErrorCode.FILE_SYSTEM_ERROR: "File system error",

    # 认证/授权
    ErrorCode.UNAUTHORIZED: "No token, authorization denied",
    ErrorCode.TOKEN_INVALID: "Token is invalid",
    ErrorCode.PERMISSION_DENIED: "Insufficient permissions",
    ErrorCode.LOGIN_FAILED: "Invalid credentials",
    ErrorCode.ACCOUNT_NOT_FOUND: "User not found",
    ErrorCode.ACCOUNT_EXISTS: "User with this email already exists",

    # 业务通用
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters",
    ErrorCode.RESOURCE_NOT_FOUND: "Resource not found",
    ErrorCode.RESOURCE_CONFLICT: "Resource already exists",
    ErrorCode.INVALID_OPERATION: "Invalid operation",
    ErrorCode.FILE_TOO_LARGE: "File too large",
    ErrorCode.FILE_TYPE_NOT_ALLOWED: "File type not allowed",

    # 文件管理
    ErrorCode.INVALID_DIRECTORY: "Directory does not exist",
    ErrorCode.PATH_OUTSIDE_ROOT: "Path not found",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIG_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.FILE_SYSTEM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 认证/授权 -> 401/403
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.LOGIN_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_EXISTS: status.HTTP_409_CONFLICT,

    # 业务通用 -> 400/404/409/413
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RESOURCE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_OPERATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FILE_TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    ErrorCode.FILE_TYPE_NOT_ALLOWED: status.HTTP_400_BAD_REQUEST,

    # 文件管理
    ErrorCode.INVALID_DIRECTORY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PATH_OUTSIDE_ROOT: status.HTTP_404_NOT_FOUND,
}


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND, "File not found")
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"field": "name"})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.data = data
        self.headers = headers
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict(),
            headers=self.headers
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data
        }


class BadRequestException(AppException):
    """请求参数错误（缺少字段、目标无效）"""

    def __init__(self, message: str = "Bad request", code: int = ErrorCode.INVALID_OPERATION):
        super().__init__(code=code, message=message)


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "Invalid request parameters", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):
    """认证异常"""

    def __init__(
        self,
        code: int = ErrorCode.UNAUTHORIZED,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message, headers={"WWW-Authenticate": "Bearer"})


class PermissionException(AppException):
    """权限异常"""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            code=ErrorCode.PERMISSION_DENIED,
            message=message
        )


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, message: str = "Resource not found", code: int = ErrorCode.RESOURCE_NOT_FOUND):
        super().__init__(code=code, message=message)


class ConflictException(AppException):
    """资源冲突（重名）"""

    def __init__(self, message: str = "Resource already exists", code: int = ErrorCode.RESOURCE_CONFLICT):
        super().__init__(code=code, message=message)


class PayloadTooLargeException(AppException):
    """上传文件超出大小限制"""

    def __init__(self, message: str = "File too large", max_size: Optional[int] = None):
        super().__init__(
            code=ErrorCode.FILE_TOO_LARGE,
            message=message,
            data={"maxSize": max_size} if max_size else None
        )


class InvalidDirectoryException(AppException):
    """目录配置无效"""

    def __init__(self, message: str = "Directory does not exist"):
        super().__init__(code=ErrorCode.INVALID_DIRECTORY, message=message)


class PathOutsideRootException(AppException):
    """路径越出根目录"""

    def __init__(self, path: str = ""):
        super().__init__(
            code=ErrorCode.PATH_OUTSIDE_ROOT,
            data={"path": path} if path else None
        )


class FileSystemException(AppException):
    """文件系统操作失败"""

    def __init__(self, message: str = "File system error"):
        super().__init__(code=ErrorCode.FILE_SYSTEM_ERROR, message=message)


# ==================== 异常处理器 ====================

def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "code": ErrorCode.VALIDATION_ERROR,
                "message": ERROR_MESSAGES[ErrorCode.VALIDATION_ERROR],
                "data": {"errors": errors}
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # 映射 HTTP 状态码到业务错误码
        code_mapping = {
            400: ErrorCode.INVALID_OPERATION,
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.PERMISSION_DENIED,
            404: ErrorCode.RESOURCE_NOT_FOUND,
            409: ErrorCode.RESOURCE_CONFLICT,
            413: ErrorCode.FILE_TOO_LARGE,
            500: ErrorCode.INTERNAL_ERROR,
        }

        code = code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else ERROR_MESSAGES.get(code, "Request failed")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": code,
                "message": message,
                "data": None
            },
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request, exc: Exception):
        logger.error(f"未处理异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "code": ErrorCode.INTERNAL_ERROR,
                "message": ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR],
                "data": None
            }
        )

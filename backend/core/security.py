"""
统一鉴权模块
提供JWT令牌生成、验证和密码处理功能
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from fastapi import Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ValidationError

from models import UserPermissions, User
from .config import get_settings
from .errors import AuthException, ErrorCode

# Bearer令牌认证（缺失时由 get_current_user 统一返回 401）
security = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """令牌数据"""
    id: int
    email: str
    name: str = ""
    role: str = "viewer"
    permissions: UserPermissions = UserPermissions()

    @classmethod
    def from_user(cls, user: User) -> "TokenData":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            permissions=user.permissions
        )


def hash_password(password: str) -> str:
    """
    加密密码
    bcrypt 限制密码长度不超过 72 字节
    """
    if not isinstance(password, str):
        password = str(password)

    password_bytes = password.encode('utf-8')[:72]
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    if not isinstance(plain_password, str):
        plain_password = str(plain_password)

    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # 哈希格式非法
        return False


def create_token(data: TokenData, expires_delta: Optional[timedelta] = None) -> str:
    """
    创建JWT令牌

    Args:
        data: 令牌数据
        expires_delta: 过期时间增量，默认使用 jwt_expire_minutes
    """
    settings = get_settings()
    to_encode = data.model_dump()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expire_minutes)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta

    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[TokenData]:
    """解码JWT令牌，签名错误、过期或载荷不完整时返回 None"""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return TokenData(**payload)
    except (JWTError, ValidationError):
        return None


def _authenticate(token: Optional[str]) -> TokenData:
    if not token:
        raise AuthException(ErrorCode.UNAUTHORIZED)

    token_data = decode_token(token)
    if token_data is None:
        raise AuthException(ErrorCode.TOKEN_INVALID)
    return token_data


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """获取当前用户（依赖注入用）"""
    return _authenticate(credentials.credentials if credentials else None)


async def get_download_user(
    token: Optional[str] = Query(None, description="下载链接可通过 URL 携带令牌"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """下载接口：优先使用 Authorization 头，其次使用 URL 参数 token"""
    if credentials:
        return _authenticate(credentials.credentials)
    return _authenticate(token)

"""
数据验证模式目录
"""

from .auth import UserLogin, UserRegister, TokenVerify
from .user import UserCreate, UserUpdate, PermissionsUpdate

__all__ = [
    # 认证
    "UserLogin", "UserRegister", "TokenVerify",
    # 用户管理
    "UserCreate", "UserUpdate", "PermissionsUpdate",
]

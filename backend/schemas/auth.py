"""
认证数据验证
登录、注册、令牌校验
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


def validate_email_format(email: str) -> str:
    """简单的邮箱格式检查，统一去掉首尾空白"""
    email = (email or "").strip()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValueError("Please provide a valid email")
    return email


class UserLogin(BaseModel):
    """用户登录"""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserRegister(BaseModel):
    """自助注册（需开启 allow_registration）"""
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email_format(v)


class TokenVerify(BaseModel):
    """令牌校验"""
    token: Optional[str] = None

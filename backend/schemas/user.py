"""
用户管理数据验证
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from models import ROLES, ROLE_VIEWER
from .auth import validate_email_format


def validate_role(role: Optional[str]) -> Optional[str]:
    if role is not None and role not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")
    return role


class PermissionsUpdate(BaseModel):
    """能力开关（部分更新）"""
    view: Optional[bool] = None
    edit: Optional[bool] = None
    download: Optional[bool] = None


class UserCreate(BaseModel):
    """管理员创建用户"""
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    password: str = Field(..., min_length=6, max_length=72)
    role: str = ROLE_VIEWER
    # 未提供时按角色取默认能力
    permissions: Optional[PermissionsUpdate] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email_format(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        return validate_role(v)


class UserUpdate(BaseModel):
    """管理员更新用户（所有字段可选）"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    role: Optional[str] = None
    permissions: Optional[PermissionsUpdate] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email_format(v) if v is not None else v

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        return validate_role(v)

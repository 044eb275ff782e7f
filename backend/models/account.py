"""
账户数据模型
用户记录持久化在 users.json 中（{"users": [...]}）
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# 角色名称
ROLE_ADMIN = "admin"
ROLE_EDITOR = "editor"
ROLE_USER = "user"  # 旧数据中的角色名，等同 editor
ROLE_VIEWER = "viewer"

ROLES = (ROLE_ADMIN, ROLE_EDITOR, ROLE_USER, ROLE_VIEWER)


class UserPermissions(BaseModel):
    """能力开关，与角色相互独立"""
    view: bool = True
    edit: bool = False
    download: bool = False

    @classmethod
    def for_role(cls, role: str) -> "UserPermissions":
        """按角色给出默认能力"""
        if role in (ROLE_ADMIN, ROLE_EDITOR, ROLE_USER):
            return cls(view=True, edit=True, download=True)
        return cls()


class User(BaseModel):
    """用户记录"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    email: str
    password_hash: str
    role: str = ROLE_VIEWER
    permissions: UserPermissions = Field(default_factory=UserPermissions)
    created_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="before")
    @classmethod
    def _legacy_password_field(cls, data):
        # 旧版 users.json 把哈希存放在 password 字段
        if isinstance(data, dict) and "password" in data \
                and "passwordHash" not in data and "password_hash" not in data:
            data = dict(data)
            data["passwordHash"] = data.pop("password")
        return data

    def to_record(self) -> dict:
        """写入 JSON 文件的格式"""
        return self.model_dump(mode="json", by_alias=True)

    def to_public(self) -> dict:
        """对外返回的格式（不含密码哈希）"""
        return self.model_dump(mode="json", by_alias=True, exclude={"password_hash"})

"""
用户存储
基于 JSON 文件的用户持久化（{"users": [...]}）
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from starlette.concurrency import run_in_threadpool

from core.config import get_settings
from core.errors import ConflictException, NotFoundException, ErrorCode
from core.security import hash_password
from models import User, UserPermissions, ROLE_VIEWER

logger = logging.getLogger(__name__)


class UserStore:
    """用户存储管理器"""

    def __init__(self, users_file: Union[str, Path]):
        self.users_file = Path(users_file)
        self._lock = asyncio.Lock()

    # ============ 文件读写 ============

    def _read(self) -> List[User]:
        if not self.users_file.exists():
            return []

        with open(self.users_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        # 兼容旧格式：直接是列表
        records = data.get("users", []) if isinstance(data, dict) else data
        return [User.model_validate(record) for record in records]

    def _write(self, users: List[User]):
        self.users_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.users_file.with_suffix(".json.tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump({"users": [u.to_record() for u in users]}, f, indent=2, ensure_ascii=False)
        tmp_file.replace(self.users_file)

    # ============ 查询 ============

    async def list_users(self) -> List[User]:
        async with self._lock:
            return await run_in_threadpool(self._read)

    async def count(self) -> int:
        return len(await self.list_users())

    async def get_by_id(self, user_id: int) -> Optional[User]:
        for user in await self.list_users():
            if user.id == user_id:
                return user
        return None

    async def get_by_email(self, email: str) -> Optional[User]:
        """邮箱比较不区分大小写"""
        target = (email or "").strip().lower()
        for user in await self.list_users():
            if user.email.lower() == target:
                return user
        return None

    # ============ 变更 ============

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
        permissions: Optional[Union[UserPermissions, Dict[str, Any]]] = None
    ) -> User:
        """
        创建用户

        Raises:
            ConflictException: 邮箱已存在
        """
        role = role or ROLE_VIEWER
        if permissions is None:
            permissions = UserPermissions.for_role(role)
        elif isinstance(permissions, dict):
            permissions = UserPermissions(**permissions)

        # bcrypt 较慢，放到线程池且不占用锁
        password_hash = await run_in_threadpool(hash_password, password)

        async with self._lock:
            users = await run_in_threadpool(self._read)
            if any(u.email.lower() == email.strip().lower() for u in users):
                raise ConflictException(
                    "User with this email already exists", code=ErrorCode.ACCOUNT_EXISTS
                )

            user = User(
                id=max((u.id for u in users), default=0) + 1,
                name=name,
                email=email.strip(),
                password_hash=password_hash,
                role=role,
                permissions=permissions
            )
            users.append(user)
            await run_in_threadpool(self._write, users)

        logger.info(f"创建用户: {user.email} (id={user.id}, role={user.role})")
        return user

    async def update_user(self, user_id: int, updates: Dict[str, Any]) -> User:
        """
        部分更新用户，password 字段会被重新哈希

        Raises:
            NotFoundException: 用户不存在
            ConflictException: 新邮箱被其他用户占用
        """
        password_hash = None
        if updates.get("password"):
            password_hash = await run_in_threadpool(hash_password, updates["password"])

        async with self._lock:
            users = await run_in_threadpool(self._read)
            index = next((i for i, u in enumerate(users) if u.id == user_id), None)
            if index is None:
                raise NotFoundException("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)

            current = users[index]
            changes: Dict[str, Any] = {}

            for field in ("name", "role"):
                if updates.get(field):
                    changes[field] = updates[field]

            email = updates.get("email")
            if email and email.strip().lower() != current.email.lower():
                if any(u.email.lower() == email.strip().lower() for u in users if u.id != user_id):
                    raise ConflictException(
                        "User with this email already exists", code=ErrorCode.ACCOUNT_EXISTS
                    )
                changes["email"] = email.strip()

            permissions = updates.get("permissions")
            if permissions is not None:
                if isinstance(permissions, dict):
                    permissions = current.permissions.model_copy(update=permissions)
                changes["permissions"] = permissions

            if password_hash:
                changes["password_hash"] = password_hash

            updated = current.model_copy(update=changes)
            users[index] = updated
            await run_in_threadpool(self._write, users)

        logger.info(f"更新用户: id={user_id}, 字段: {', '.join(sorted(changes)) or '无'}")
        return updated

    async def delete_user(self, user_id: int) -> User:
        """
        删除用户

        Raises:
            NotFoundException: 用户不存在
        """
        async with self._lock:
            users = await run_in_threadpool(self._read)
            remaining = [u for u in users if u.id != user_id]
            if len(remaining) == len(users):
                raise NotFoundException("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)
            deleted = next(u for u in users if u.id == user_id)
            await run_in_threadpool(self._write, remaining)

        logger.info(f"删除用户: {deleted.email} (id={user_id})")
        return deleted


_user_store: Optional[UserStore] = None


def get_user_store() -> UserStore:
    """获取用户存储实例"""
    global _user_store
    if _user_store is None:
        _user_store = UserStore(get_settings().users_file)
    return _user_store

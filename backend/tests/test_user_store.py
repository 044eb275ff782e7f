"""
用户存储测试
"""

import asyncio
import json
import pytest

from core.bootstrap import init_admin_user
from core.config import Settings
from core.errors import ConflictException, NotFoundException
from core.security import verify_password, hash_password
from utils.user_store import UserStore


@pytest.mark.asyncio
class TestUserStore:
    """用户增删改查"""

    async def test_empty_store(self, user_store: UserStore):
        assert await user_store.list_users() == []
        assert await user_store.count() == 0

    async def test_create_user(self, user_store: UserStore):
        user = await user_store.create_user("Alice", "alice@test.com", "secret1", role="editor")

        assert user.id == 1
        assert user.permissions.edit is True
        assert verify_password("secret1", user.password_hash)

        data = json.loads(user_store.users_file.read_text(encoding="utf-8"))
        assert data["users"][0]["email"] == "alice@test.com"
        assert "passwordHash" in data["users"][0]

    async def test_ids_increment(self, user_store: UserStore):
        await user_store.create_user("A", "a@test.com", "secret1")
        second = await user_store.create_user("B", "b@test.com", "secret1")
        assert second.id == 2

    async def test_concurrent_creates(self, user_store: UserStore):
        """哈希与文件读写在线程池中进行，并发创建仍得到互不重复的 id"""
        users = await asyncio.gather(*[
            user_store.create_user(f"U{i}", f"u{i}@test.com", "secret1") for i in range(5)
        ])

        assert sorted(u.id for u in users) == [1, 2, 3, 4, 5]
        assert await user_store.count() == 5

    async def test_update_password_rehashed(self, user_store: UserStore):
        user = await user_store.create_user("P", "p@test.com", "secret1")
        updated = await user_store.update_user(user.id, {"password": "secret2"})

        assert verify_password("secret2", updated.password_hash)
        stored = await user_store.get_by_id(user.id)
        assert stored.password_hash == updated.password_hash

    async def test_viewer_default_permissions(self, user_store: UserStore):
        user = await user_store.create_user("V", "v@test.com", "secret1")
        assert user.role == "viewer"
        assert user.permissions.model_dump() == {"view": True, "edit": False, "download": False}

    async def test_duplicate_email_case_insensitive(self, user_store: UserStore):
        await user_store.create_user("A", "a@test.com", "secret1")
        with pytest.raises(ConflictException) as exc_info:
            await user_store.create_user("A2", "A@TEST.com", "secret1")
        assert exc_info.value.http_status == 409

    async def test_get_by_email_case_insensitive(self, user_store: UserStore):
        await user_store.create_user("A", "a@test.com", "secret1")
        user = await user_store.get_by_email("  A@Test.COM ")
        assert user is not None
        assert user.name == "A"

    async def test_update_user(self, user_store: UserStore):
        user = await user_store.create_user("A", "a@test.com", "secret1")
        updated = await user_store.update_user(user.id, {
            "name": "Alice",
            "password": "newsecret",
            "permissions": {"download": True}
        })

        assert updated.name == "Alice"
        assert verify_password("newsecret", updated.password_hash)
        assert updated.permissions.download is True
        assert updated.permissions.view is True
        assert (await user_store.get_by_id(user.id)).name == "Alice"

    async def test_update_email_conflict(self, user_store: UserStore):
        await user_store.create_user("A", "a@test.com", "secret1")
        b = await user_store.create_user("B", "b@test.com", "secret1")
        with pytest.raises(ConflictException):
            await user_store.update_user(b.id, {"email": "a@test.com"})

    async def test_update_missing_user(self, user_store: UserStore):
        with pytest.raises(NotFoundException):
            await user_store.update_user(99, {"name": "x"})

    async def test_delete_user(self, user_store: UserStore):
        user = await user_store.create_user("A", "a@test.com", "secret1")
        await user_store.delete_user(user.id)

        assert await user_store.get_by_id(user.id) is None
        with pytest.raises(NotFoundException):
            await user_store.delete_user(user.id)

    async def test_legacy_format(self, user_store: UserStore):
        """兼容旧格式：顶层为列表、哈希存放在 password 字段"""
        user_store.users_file.write_text(json.dumps([{
            "id": 7,
            "name": "Legacy",
            "email": "legacy@test.com",
            "password": hash_password("oldpass"),
            "role": "user"
        }]), encoding="utf-8")

        user = await user_store.get_by_email("legacy@test.com")
        assert user.id == 7
        assert verify_password("oldpass", user.password_hash)

        created = await user_store.create_user("New", "new@test.com", "secret1")
        assert created.id == 8


@pytest.mark.asyncio
class TestBootstrap:
    """默认管理员初始化"""

    async def test_creates_admin_when_empty(self, user_store: UserStore):
        settings = Settings(_env_file=None, admin_email="root@test.com", admin_password="rootpass")
        result = await init_admin_user(user_store, settings)

        assert result["created"] is True
        admin = await user_store.get_by_email("root@test.com")
        assert admin.role == "admin"
        assert verify_password("rootpass", admin.password_hash)

    async def test_skips_when_users_exist(self, user_store: UserStore):
        await user_store.create_user("A", "a@test.com", "secret1")
        settings = Settings(_env_file=None, admin_email="root@test.com")

        result = await init_admin_user(user_store, settings)
        assert result["created"] is False
        assert await user_store.get_by_email("root@test.com") is None

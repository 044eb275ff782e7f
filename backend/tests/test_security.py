"""
安全模块单元测试
"""

import pytest
from datetime import timedelta

from core.errors import AuthException, ErrorCode
from core.security import (
    hash_password,
    verify_password,
    create_token,
    decode_token,
    TokenData,
    _authenticate
)
from models import UserPermissions


class TestPasswordHashing:
    """密码哈希测试"""

    def test_hash_password(self):
        """测试密码哈希生成"""
        hashed = hash_password("TestPassword123")

        assert hashed
        assert hashed != "TestPassword123"
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        """测试每次哈希结果不同（使用随机盐）"""
        assert hash_password("TestPassword123") != hash_password("TestPassword123")

    def test_verify_password(self):
        hashed = hash_password("TestPassword123")

        assert verify_password("TestPassword123", hashed) is True
        assert verify_password("WrongPassword456", hashed) is False
        assert verify_password("", hashed) is False

    def test_verify_password_malformed_hash(self):
        """测试非法哈希不会抛出异常"""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestJWT:
    """JWT 令牌测试"""

    def _token_data(self, **kwargs) -> TokenData:
        data = {
            "id": 1,
            "email": "user@test.com",
            "name": "Test User",
            "role": "editor",
            "permissions": UserPermissions(view=True, edit=True, download=True)
        }
        data.update(kwargs)
        return TokenData(**data)

    def test_create_and_decode_token(self):
        token = create_token(self._token_data())
        decoded = decode_token(token)

        assert decoded is not None
        assert decoded.id == 1
        assert decoded.email == "user@test.com"
        assert decoded.role == "editor"
        assert decoded.permissions.edit is True

    def test_decode_token_invalid(self):
        assert decode_token("invalid.token.here") is None

    def test_decode_token_expired(self):
        token = create_token(self._token_data(), expires_delta=timedelta(seconds=-10))
        assert decode_token(token) is None

    def test_decode_token_tampered(self):
        token = create_token(self._token_data())
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        assert decode_token(tampered) is None


class TestAuthenticate:
    """令牌校验错误码测试"""

    def test_missing_token(self):
        with pytest.raises(AuthException) as exc_info:
            _authenticate(None)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED
        assert exc_info.value.message == "No token, authorization denied"

    def test_invalid_token(self):
        with pytest.raises(AuthException) as exc_info:
            _authenticate("garbage")
        assert exc_info.value.code == ErrorCode.TOKEN_INVALID
        assert exc_info.value.http_status == 401
        assert exc_info.value.message == "Token is invalid"

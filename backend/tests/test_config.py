"""
配置模块测试
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, BACKEND_DIR, get_settings, reload_settings


class TestSettings:
    """配置项测试"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATA_DIR", raising=False)
        settings = Settings(_env_file=None)

        assert settings.jwt_algorithm == "HS256"
        assert settings.jwt_expire_minutes == 60
        assert settings.max_upload_size == 100 * 1024 * 1024
        assert settings.max_upload_files == 10
        assert settings.zip_compress_level == 9
        assert settings.allow_registration is False
        assert settings.upload_allowed_extensions == []

    def test_relative_data_dir_resolves_against_backend(self, monkeypatch):
        monkeypatch.delenv("DATA_DIR", raising=False)
        settings = Settings(_env_file=None, data_dir="data")

        assert settings.data_path == (BACKEND_DIR / "data").resolve()
        assert settings.users_file == settings.data_path / "users.json"
        assert settings.directory_config_file == settings.data_path / "config" / "directoryConfig.json"
        assert settings.default_files_dir == settings.data_path / "files"

    def test_absolute_data_dir(self, tmp_path):
        settings = Settings(_env_file=None, data_dir=str(tmp_path))
        assert settings.data_path == tmp_path.resolve()

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_FILES", "3")
        monkeypatch.setenv("ALLOW_REGISTRATION", "true")
        settings = Settings(_env_file=None)

        assert settings.max_upload_files == 3
        assert settings.allow_registration is True

    def test_compress_level_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, zip_compress_level=10)


def test_reload_settings_replaces_singleton():
    before = get_settings()
    after = reload_settings()
    try:
        assert after is get_settings()
        assert after is not before
    finally:
        import core.config
        core.config._settings_instance = before

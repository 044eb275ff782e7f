"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 应用信息
    app_name: str = "File Manager"
    app_version: str = "1.0.0"
    debug: bool = False

    # 数据目录（用户、目录配置、默认文件根目录）
    data_dir: str = "data"

    # JWT令牌配置
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60  # 单一固定有效期，无刷新令牌

    # 上传限制
    max_upload_size: int = 100 * 1024 * 1024  # 100MB
    max_upload_files: int = 10
    upload_allowed_extensions: List[str] = []  # 为空表示不限制

    # 文件夹打包下载
    zip_compress_level: int = Field(9, ge=0, le=9)

    # 默认根目录为空时创建示例目录
    create_sample_directories: bool = True

    # 是否开放自助注册（注册用户角色为 viewer）
    allow_registration: bool = False

    # 默认管理员账户配置（首次启动时创建）
    admin_name: str = "Admin User"
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"  # 首次启动后请立即修改

    # CORS
    cors_origins: List[str] = ["*"]

    # 慢请求阈值（秒）
    slow_request_threshold: float = 1.0

    @property
    def data_path(self) -> Path:
        path = Path(self.data_dir).expanduser()
        if not path.is_absolute():
            path = BACKEND_DIR / path
        return path.resolve()

    @property
    def users_file(self) -> Path:
        return self.data_path / "users.json"

    @property
    def directory_config_file(self) -> Path:
        return self.data_path / "config" / "directoryConfig.json"

    @property
    def default_files_dir(self) -> Path:
        return self.data_path / "files"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        # 安全检查: 如果是生产环境且使用默认密钥，发出警告
        if not _settings_instance.debug and _settings_instance.jwt_secret == DEFAULT_JWT_SECRET:
            logging.getLogger("core.config").warning(
                "🚨 [安全警告] 您正在生产环境模式下使用默认的 JWT_SECRET！"
                "请立即在 .env 文件中配置 JWT_SECRET。"
            )
    return _settings_instance


def reload_settings() -> Settings:
    """
    重新加载配置
    已签发的 Token 不受影响（除非修改了 JWT_SECRET）
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance

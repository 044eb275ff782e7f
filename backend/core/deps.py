"""
依赖注入
提供全局可复用的依赖项，测试中通过 app.dependency_overrides 替换
"""

from typing import Optional

from utils.user_store import get_user_store
from .config import get_settings
from .directory import DirectoryConfigService
from .security import get_current_user, TokenData


__all__ = [
    "get_settings",
    "get_current_user",
    "get_directory_service",
    "get_user_store",
    "TokenData",
]


_directory_service: Optional[DirectoryConfigService] = None


def get_directory_service() -> DirectoryConfigService:
    """获取根目录配置服务实例"""
    global _directory_service
    if _directory_service is None:
        settings = get_settings()
        _directory_service = DirectoryConfigService(
            settings.directory_config_file,
            settings.default_files_dir,
            create_sample_directories=settings.create_sample_directories
        )
    return _directory_service


"""
目录配置服务
解析所有文件操作使用的根目录：自定义路径（持久化在 JSON 中）或默认的 data/files
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from utils.paths import safe_join

from .errors import InvalidDirectoryException, BadRequestException

logger = logging.getLogger(__name__)

SAMPLE_DIRECTORIES = ("Documents", "Images", "Reports")


@dataclass(frozen=True)
class DirectoryConfig:
    """生效中的根目录配置"""
    root: Path
    custom_path: str = ""
    is_custom: bool = False

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "customPath": self.custom_path,
            "isCustom": self.is_custom
        }


class DirectoryConfigService:
    """
    根目录配置服务

    读取结果会被缓存，set_config / reset_config 之后显式失效；
    外部手动修改配置文件后可调用 invalidate() 重新加载。
    """

    def __init__(
        self,
        config_file: Union[str, Path],
        default_root: Union[str, Path],
        create_sample_directories: bool = False
    ):
        self.config_file = Path(config_file)
        self.default_root = Path(default_root)
        self.create_sample_directories = create_sample_directories
        self._cached: Optional[DirectoryConfig] = None
        self._lock = threading.Lock()

    # ============ 读取 ============

    def get_config(self) -> DirectoryConfig:
        """获取当前生效的根目录配置"""
        with self._lock:
            if self._cached is None:
                self._cached = self._load()
            return self._cached

    @property
    def root(self) -> Path:
        return self.get_config().root

    def invalidate(self):
        """清除缓存，下次访问时重新读取配置文件"""
        with self._lock:
            self._cached = None

    def _read_custom_path(self) -> str:
        if not self.config_file.exists():
            return ""
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"读取目录配置失败，使用默认目录: {e}")
            return ""
        if not isinstance(data, dict):
            logger.error("目录配置格式错误，使用默认目录")
            return ""
        return str(data.get("directoryPath") or "")

    def _load(self) -> DirectoryConfig:
        custom_path = self._read_custom_path()
        if custom_path:
            if os.path.isdir(custom_path):
                return DirectoryConfig(
                    root=Path(custom_path).resolve(),
                    custom_path=custom_path,
                    is_custom=True
                )
            logger.warning(f"自定义目录不存在或不是目录，使用默认目录: {custom_path}")

        return DirectoryConfig(root=self._ensure_default_root(), custom_path=custom_path)

    def _ensure_default_root(self) -> Path:
        root = self.default_root
        created = not root.exists()
        root.mkdir(parents=True, exist_ok=True)

        if self.create_sample_directories and (created or not any(root.iterdir())):
            for name in SAMPLE_DIRECTORIES:
                (root / name).mkdir(exist_ok=True)
            logger.info(f"默认目录为空，已创建示例目录: {', '.join(SAMPLE_DIRECTORIES)}")

        return root.resolve()

    # ============ 写入 ============

    def set_config(self, directory_path: str) -> DirectoryConfig:
        """
        设置自定义根目录

        Raises:
            BadRequestException: 未提供路径
            InvalidDirectoryException: 路径不是已存在的绝对目录
        """
        if not directory_path or not directory_path.strip():
            raise BadRequestException("Directory path is required")

        directory_path = os.path.expanduser(directory_path.strip())
        if not os.path.isabs(directory_path):
            raise InvalidDirectoryException("Directory path must be absolute")
        if not os.path.exists(directory_path):
            raise InvalidDirectoryException("Directory does not exist")
        if not os.path.isdir(directory_path):
            raise InvalidDirectoryException("Path is not a directory")

        self._write({"directoryPath": directory_path})
        logger.info(f"根目录已更新为: {directory_path}")
        self.invalidate()
        return self.get_config()

    def reset_config(self) -> DirectoryConfig:
        """清除自定义根目录，恢复默认目录"""
        self._write({"directoryPath": ""})
        logger.info("根目录已恢复为默认目录")
        self.invalidate()
        return self.get_config()

    def _write(self, data: dict):
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    # ============ 路径解析 ============

    def resolve(self, relative: str) -> Path:
        """把客户端相对路径解析到当前根目录下"""
        return safe_join(self.root, relative)

"""
文件管理模块测试配置
共享 fixtures 来自 tests/test_conftest.py，这里补充模块专用的目录树与服务实例
"""

import sys
from pathlib import Path

import pytest

# 添加backend目录到路径，以便导入tests.test_conftest
backend_dir = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(backend_dir))

from tests.test_conftest import *

from core.config import Settings
from modules.filemanager.filemanager_services import FileManagerService


@pytest.fixture
def root(directory_service) -> Path:
    """已初始化的根目录（含示例目录）"""
    return directory_service.root


@pytest.fixture
def sample_tree(root) -> Path:
    """
    root/
      Documents/
      Images/
      Reports/
        2024/
          q1.txt
        empty/
        summary.txt
      readme.md
    """
    reports = root / "Reports"
    (reports / "2024").mkdir()
    (reports / "2024" / "q1.txt").write_text("quarter one", encoding="utf-8")
    (reports / "empty").mkdir()
    (reports / "summary.txt").write_text("summary", encoding="utf-8")
    (root / "readme.md").write_text("# readme", encoding="utf-8")
    return root


@pytest.fixture
def make_service(directory_service):
    """按需覆盖配置项创建服务实例"""
    def factory(**overrides) -> FileManagerService:
        return FileManagerService(directory_service, Settings(_env_file=None, **overrides))
    return factory


@pytest.fixture
def service(make_service) -> FileManagerService:
    return make_service()

"""
路径安全工具
所有文件操作统一经由此处把客户端传入的相对路径解析为根目录下的绝对路径
"""

import os
import logging
from pathlib import Path, PurePosixPath
from typing import Union

from core.errors import PathOutsideRootException, BadRequestException

logger = logging.getLogger(__name__)


def normalize_relative(path: str) -> str:
    """统一分隔符并去掉首尾斜杠"""
    if not path:
        return ""
    return path.replace("\\", "/").strip("/")


def is_within(root: Path, path: Path) -> bool:
    """path 是否为 root 本身或其子孙（两者都应已 resolve）"""
    return path == root or root in path.parents


def safe_join(root: Union[str, Path], relative: str) -> Path:
    """
    将相对路径拼接到根目录下

    父目录经 resolve 规范化，最后一级保持原样，
    因此返回的是符号链接本身而不是其指向的目标。
    链接目标同样必须位于根目录内，仅靠 join 无法阻止 ../ 越界。

    Raises:
        PathOutsideRootException: 解析结果不在根目录内
    """
    if relative and "\x00" in relative:
        raise PathOutsideRootException(relative)

    root_path = Path(root).resolve()
    cleaned = normalize_relative(relative)
    if not cleaned:
        return root_path

    lexical = Path(os.path.normpath(root_path / cleaned))
    if lexical == root_path:
        return root_path
    candidate = lexical.parent.resolve() / lexical.name

    if not is_within(root_path, candidate) or not is_within(root_path, candidate.resolve()):
        logger.warning(f"路径遍历尝试被阻止: {relative}")
        raise PathOutsideRootException(relative)
    return candidate


def to_relative(root: Union[str, Path], path: Path) -> str:
    """绝对路径转换为相对根目录的 POSIX 路径（根目录本身为空串）"""
    rel = os.path.relpath(path, Path(root).resolve())
    if rel == ".":
        return ""
    return PurePosixPath(*Path(rel).parts).as_posix()


def validate_name(name: str, field: str = "Name") -> str:
    """
    校验单级文件/目录名

    Raises:
        BadRequestException: 为空、包含分隔符或为 . / ..
    """
    if name is None or not name.strip():
        raise BadRequestException(f"{field} is required")
    name = name.strip()
    if "/" in name or "\\" in name or "\x00" in name or name in (".", ".."):
        raise BadRequestException(f"{field} is not a valid file or directory name")
    return name

"""
工具函数目录
按功能分类组织
"""

from .paths import normalize_relative, safe_join, to_relative, validate_name

__all__ = [
    # 路径安全
    "normalize_relative",
    "safe_join",
    "to_relative",
    "validate_name",
]

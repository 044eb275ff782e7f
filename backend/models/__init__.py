"""
数据模型目录
"""

from .account import User, UserPermissions, ROLES, ROLE_ADMIN, ROLE_EDITOR, ROLE_USER, ROLE_VIEWER

__all__ = ["User", "UserPermissions", "ROLES", "ROLE_ADMIN", "ROLE_EDITOR", "ROLE_USER", "ROLE_VIEWER"]

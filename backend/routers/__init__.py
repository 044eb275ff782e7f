"""
路由目录
"""

from . import auth, user, health

__all__ = ["auth", "user", "health"]

"""
权限策略
角色等级与能力开关统一在 AccessPolicy 中判定
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional

from fastapi import Depends

from models import ROLE_ADMIN, ROLE_EDITOR, ROLE_USER, ROLE_VIEWER
from .errors import PermissionException
from .security import TokenData, get_current_user, get_download_user


class Action(str, Enum):
    """受控操作"""
    VIEW = "view"                   # 浏览目录、读取目录配置
    DOWNLOAD = "download"           # 下载文件、打包下载文件夹
    EDIT = "edit"                   # 上传、新建目录、重命名、删除
    CONFIGURE = "configure"         # 修改根目录
    MANAGE_USERS = "manage_users"   # 用户管理


class Requirement(NamedTuple):
    """操作要求：最低角色 + 可替代的能力开关"""
    min_role: str
    capability: Optional[str] = None


ROLE_LEVELS: Dict[str, int] = {
    ROLE_ADMIN: 3,
    ROLE_EDITOR: 2,
    ROLE_USER: 2,
    ROLE_VIEWER: 1,
}

DEFAULT_REQUIREMENTS: Dict[Action, Requirement] = {
    Action.VIEW: Requirement(ROLE_VIEWER, "view"),
    Action.DOWNLOAD: Requirement(ROLE_EDITOR, "download"),
    Action.EDIT: Requirement(ROLE_EDITOR, "edit"),
    Action.CONFIGURE: Requirement(ROLE_ADMIN),
    Action.MANAGE_USERS: Requirement(ROLE_ADMIN),
}


class AccessPolicy:
    """
    授权策略

    通过条件（满足其一即可）：
    - 角色为 admin
    - 角色等级 >= 操作要求的最低等级
    - 操作对应的能力开关为 True
    """

    def __init__(self, requirements: Optional[Dict[Action, Requirement]] = None):
        self.requirements = dict(requirements or DEFAULT_REQUIREMENTS)

    @staticmethod
    def role_level(role: Optional[str]) -> int:
        """未知角色等级为 0，只能依靠能力开关"""
        return ROLE_LEVELS.get(role or "", 0)

    def can_perform(self, user: TokenData, action: Action) -> bool:
        if user.role == ROLE_ADMIN:
            return True

        requirement = self.requirements[action]
        if self.role_level(user.role) >= self.role_level(requirement.min_role):
            return True

        if requirement.capability:
            return bool(getattr(user.permissions, requirement.capability, False))
        return False

    def denial_message(self, action: Action) -> str:
        requirement = self.requirements[action]
        if requirement.capability:
            return f"You do not have permission to {requirement.capability} files"
        if requirement.min_role == ROLE_ADMIN:
            return "Admin access required"
        return "Insufficient permissions"

    def check(self, user: TokenData, action: Action) -> TokenData:
        """不满足时抛出 PermissionException"""
        if not self.can_perform(user, action):
            raise PermissionException(self.denial_message(action))
        return user


access_policy = AccessPolicy()


def require_action(action: Action):
    """权限检查依赖工厂"""
    async def action_checker(user: TokenData = Depends(get_current_user)) -> TokenData:
        return access_policy.check(user, action)
    return action_checker


def require_download():
    """下载权限检查（支持 URL 参数携带令牌）"""
    async def download_checker(user: TokenData = Depends(get_download_user)) -> TokenData:
        return access_policy.check(user, Action.DOWNLOAD)
    return download_checker


def require_admin():
    """仅允许系统管理员访问（role=admin）"""
    return require_action(Action.MANAGE_USERS)

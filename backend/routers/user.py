"""
用户管理路由
除查看本人信息外均需要管理员权限
"""

import logging
from fastapi import APIRouter, Depends, status

from core.errors import BadRequestException, NotFoundException, PermissionException, ErrorCode
from core.permissions import access_policy, require_admin, Action
from core.security import TokenData, get_current_user
from models import UserPermissions
from schemas import UserCreate, UserUpdate
from utils.user_store import UserStore, get_user_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["用户管理"])


@router.get("")
async def list_users(
    current_user: TokenData = Depends(require_admin()),
    store: UserStore = Depends(get_user_store)
):
    """获取用户列表"""
    return [user.to_public() for user in await store.list_users()]


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: TokenData = Depends(get_current_user),
    store: UserStore = Depends(get_user_store)
):
    """获取用户详情（管理员或本人）"""
    if current_user.id != user_id and not access_policy.can_perform(current_user, Action.MANAGE_USERS):
        raise PermissionException("Not authorized to view this user")

    user = await store.get_by_id(user_id)
    if not user:
        raise NotFoundException("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)
    return user.to_public()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    current_user: TokenData = Depends(require_admin()),
    store: UserStore = Depends(get_user_store)
):
    """管理员创建用户，未指定能力时按角色取默认值"""
    permissions = None
    if data.permissions is not None:
        permissions = UserPermissions.for_role(data.role).model_copy(
            update=data.permissions.model_dump(exclude_none=True)
        )

    user = await store.create_user(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
        permissions=permissions
    )
    logger.info(f"管理员 {current_user.email} 创建了用户 {user.email}")
    return user.to_public()


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: TokenData = Depends(require_admin()),
    store: UserStore = Depends(get_user_store)
):
    """更新用户信息（部分更新）"""
    updates = data.model_dump(exclude_none=True, exclude={"permissions"})

    if data.permissions is not None:
        updates["permissions"] = data.permissions.model_dump(exclude_none=True)
    elif data.role:
        # 仅修改角色时同步重置能力开关
        updates["permissions"] = UserPermissions.for_role(data.role)

    user = await store.update_user(user_id, updates)
    return user.to_public()


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: TokenData = Depends(require_admin()),
    store: UserStore = Depends(get_user_store)
):
    """删除用户（不能删除自己）"""
    if current_user.id == user_id:
        raise BadRequestException("Cannot delete your own account")

    user = await store.delete_user(user_id)
    logger.info(f"管理员 {current_user.email} 删除了用户 {user.email}")
    return {"message": "User deleted successfully"}

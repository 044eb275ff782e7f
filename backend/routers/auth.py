"""
认证路由
登录、当前用户、令牌校验、自助注册
"""

import logging
from fastapi import APIRouter, Depends, Request, status

from core.config import get_settings
from core.errors import AuthException, BadRequestException, NotFoundException, PermissionException, ErrorCode
from core.security import verify_password, create_token, decode_token, TokenData, get_current_user
from models import ROLE_VIEWER
from schemas import UserLogin, UserRegister, TokenVerify
from utils.user_store import UserStore, get_user_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["认证"])


@router.post("/login")
async def login(
    data: UserLogin,
    request: Request,
    store: UserStore = Depends(get_user_store)
):
    """用户登录"""
    client_ip = request.client.host if request.client else "unknown"
    user = await store.get_by_email(data.email)

    # 用户不存在与密码错误返回相同信息
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"登录失败 - IP: {client_ip}, 邮箱: {data.email}")
        raise AuthException(ErrorCode.LOGIN_FAILED)

    token = create_token(TokenData.from_user(user))
    logger.info(f"用户登录成功: {user.email} (IP: {client_ip})")

    return {"token": token, "user": user.to_public()}


@router.get("/me")
async def get_me(
    current_user: TokenData = Depends(get_current_user),
    store: UserStore = Depends(get_user_store)
):
    """获取当前用户信息"""
    user = await store.get_by_id(current_user.id)
    if not user:
        raise NotFoundException("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)
    return user.to_public()


@router.post("/verify")
async def verify_token(data: TokenVerify, store: UserStore = Depends(get_user_store)):
    """校验令牌是否有效，且对应用户仍然存在"""
    if not data.token:
        raise BadRequestException("No token provided")

    token_data = decode_token(data.token)
    if token_data is None:
        return {"valid": False}

    user = await store.get_by_id(token_data.id)
    if not user:
        return {"valid": False}

    return {"valid": True, "user": user.to_public()}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, store: UserStore = Depends(get_user_store)):
    """自助注册，新用户角色固定为 viewer"""
    if not get_settings().allow_registration:
        raise PermissionException("Registration is disabled")

    user = await store.create_user(
        name=data.name,
        email=data.email,
        password=data.password,
        role=ROLE_VIEWER
    )
    return user.to_public()

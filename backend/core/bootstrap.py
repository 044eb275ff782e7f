"""
系统引导初始化
首次启动时准备数据目录，并在用户存储为空时创建默认管理员账户
"""

import logging
from typing import Optional

from models import ROLE_ADMIN
from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def ensure_data_directories(settings: Optional[Settings] = None):
    """确保数据目录存在"""
    settings = settings or get_settings()
    for path in (
        settings.data_path,
        settings.users_file.parent,
        settings.directory_config_file.parent,
        settings.default_files_dir,
    ):
        path.mkdir(parents=True, exist_ok=True)


async def init_admin_user(store, settings: Optional[Settings] = None) -> dict:
    """
    初始化默认管理员账户
    仅当用户存储中没有任何账户时创建
    """
    settings = settings or get_settings()

    if await store.count() > 0:
        logger.debug("用户存储非空，跳过创建默认管理员")
        return {"created": False, "message": "用户已存在，跳过创建默认管理员"}

    # 清理密码字符串（移除可能的注释和空白字符）
    admin_password = settings.admin_password.strip()
    if "#" in admin_password:
        admin_password = admin_password.split("#")[0].strip()

    if not admin_password:
        logger.error("管理员密码不能为空")
        return {"created": False, "message": "管理员密码不能为空"}

    user = await store.create_user(
        name=settings.admin_name,
        email=settings.admin_email,
        password=admin_password,
        role=ROLE_ADMIN
    )

    logger.info(f"默认管理员账户创建成功: {user.email}")
    logger.warning(f"⚠️  默认密码: {admin_password}，请立即修改！")

    return {
        "created": True,
        "email": user.email,
        "password": admin_password,
        "message": f"默认管理员账户已创建: {user.email}"
    }

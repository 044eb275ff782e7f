"""
文件管理后端核心模块
提供配置、认证、权限、错误处理等基础设施

导出列表：
- 配置管理: get_settings, Settings, reload_settings
- 安全认证: get_current_user, create_token, decode_token, hash_password, verify_password, TokenData
- 权限策略: AccessPolicy, Action, require_action, require_admin
- 错误处理: ErrorCode, AppException
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 错误处理
from .errors import ErrorCode, AppException

# 安全认证
from .security import (
    get_current_user,
    create_token,
    decode_token,
    hash_password,
    verify_password,
    TokenData
)

# 权限策略
from .permissions import AccessPolicy, Action, require_action, require_admin

"""
File Manager - 主入口
基于 FastAPI 的 Web 文件管理后端

- 请求日志中间件
- 安全响应头中间件
- 健康检查端点
- 标准化错误处理
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.bootstrap import ensure_data_directories, init_admin_user
from core.deps import get_directory_service
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.errors import register_exception_handlers
from utils.user_store import get_user_store

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("watchfiles.main").setLevel(logging.WARNING)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    current_settings = get_settings()
    logger.info(f"🚀 正在启动 {current_settings.app_name} v{current_settings.app_version}...")

    # 1. 数据目录
    ensure_data_directories(current_settings)

    # 2. 默认管理员账户（用户存储为空时）
    admin_result = await init_admin_user(get_user_store(), current_settings)
    if admin_result.get("created"):
        logger.warning(f"⚠️ 已创建默认管理员: {admin_result['email']} / {admin_result['password']}")
        logger.warning("   请尽快登录并修改密码！")

    # 3. 解析根目录（首次启动时创建示例目录）
    config = get_directory_service().get_config()
    logger.info(f"📁 文件根目录: {config.root}{' (自定义)' if config.is_custom else ''}")

    logger.info(f"🎉 {current_settings.app_name} 启动完成!")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Web 文件管理后端：目录浏览、上传下载、打包下载与角色权限",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# ==================== 中间件配置（后添加的先执行） ====================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"]
)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    RequestLoggingMiddleware,
    slow_request_threshold=settings.slow_request_threshold
)

# ==================== 异常处理器 ====================

register_exception_handlers(app)

# ==================== 注册路由 ====================

from routers import auth, user, health
from modules.filemanager.filemanager_router import router as filemanager_router

app.include_router(auth.router)
app.include_router(user.router)
app.include_router(filemanager_router, prefix="/api/files", tags=["文件管理"])
app.include_router(health.router)


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/api/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )

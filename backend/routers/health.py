"""
健康检查路由
"""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from core.config import get_settings
from core.deps import get_directory_service
from core.directory import DirectoryConfigService

router = APIRouter(tags=["健康检查"])


@router.get("/health")
async def health_check(directories: DirectoryConfigService = Depends(get_directory_service)):
    """存活检查，同时返回当前根目录"""
    config = await run_in_threadpool(directories.get_config)
    return {
        "status": "ok",
        "version": get_settings().app_version,
        "root": str(config.root),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/api/status")
async def api_status(directories: DirectoryConfigService = Depends(get_directory_service)):
    """服务状态：根目录是否可读写"""
    config = await run_in_threadpool(directories.get_config)
    root = config.root
    writable = os.access(root, os.W_OK)
    return {
        "status": "ok" if writable else "degraded",
        "message": "File manager API is running",
        "storage": {
            "root": str(root),
            "isCustom": config.is_custom,
            "readable": os.access(root, os.R_OK),
            "writable": writable
        }
    }

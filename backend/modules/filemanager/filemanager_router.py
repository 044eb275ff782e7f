"""
文件管理 API 路由
浏览、上传、下载、打包下载、新建目录、重命名、删除以及根目录配置
"""

import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, UploadFile, File, status
from fastapi.responses import FileResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool

from core.config import get_settings
from core.deps import get_directory_service
from core.directory import DirectoryConfigService
from core.permissions import Action, require_action, require_download
from core.security import TokenData

from .filemanager_archive import generate_zip_stream
from .filemanager_schemas import DirectoryCreate, RenameRequest, DirectoryConfigUpdate
from .filemanager_services import FileManagerService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_file_service(
    directories: DirectoryConfigService = Depends(get_directory_service)
) -> FileManagerService:
    """创建文件管理服务实例"""
    return FileManagerService(directories)


def content_disposition(filename: str) -> str:
    """附件下载头，非 ASCII 文件名使用 RFC 5987 编码"""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


# ============ 根目录配置 ============

@router.get("/config")
async def get_directory_config(
    directories: DirectoryConfigService = Depends(get_directory_service),
    user: TokenData = Depends(require_action(Action.VIEW))
):
    """获取当前根目录配置"""
    config = await run_in_threadpool(directories.get_config)
    return config.to_dict()


@router.post("/config")
async def update_directory_config(
    data: DirectoryConfigUpdate,
    directories: DirectoryConfigService = Depends(get_directory_service),
    user: TokenData = Depends(require_action(Action.CONFIGURE))
):
    """设置根目录（仅管理员）"""
    config = await run_in_threadpool(directories.set_config, data.directory_path or "")
    logger.info(f"用户 {user.email} 修改根目录为: {config.root}")
    return config.to_dict()


@router.post("/config/reset")
async def reset_directory_config(
    directories: DirectoryConfigService = Depends(get_directory_service),
    user: TokenData = Depends(require_action(Action.CONFIGURE))
):
    """恢复默认根目录（仅管理员）"""
    config = await run_in_threadpool(directories.reset_config)
    logger.info(f"用户 {user.email} 恢复了默认根目录")
    return config.to_dict()


# ============ 上传 ============

@router.post("/upload")
async def upload_files(
    directory: str = Query("", description="目标目录相对路径"),
    files: Optional[List[UploadFile]] = File(None),
    file: Optional[UploadFile] = File(None),
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_action(Action.EDIT))
):
    """
    上传文件（支持多文件）

    表单字段 files（多个）与 file（单个）均可使用
    """
    uploads = list(files or [])
    if file is not None:
        uploads.append(file)

    saved = await service.save_uploads(uploads, directory)
    return {
        "message": "Files uploaded successfully",
        "files": [entry.to_response() for entry in saved]
    }


# ============ 目录与重命名 ============

@router.post("/directory", status_code=status.HTTP_201_CREATED)
async def create_directory(
    data: DirectoryCreate,
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_action(Action.EDIT))
):
    """新建目录"""
    entry = await run_in_threadpool(service.create_directory, data.path, data.name)
    return {
        "message": "Directory created successfully",
        "directory": entry.to_response()
    }


@router.put("/rename")
async def rename_item(
    data: RenameRequest,
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_action(Action.EDIT))
):
    """重命名文件或目录（不支持跨目录移动）"""
    old_path, new_path, entry = await run_in_threadpool(service.rename, data.old_path, data.new_name)
    return {
        "message": f"{'Directory' if entry.is_directory else 'File'} renamed successfully",
        "oldPath": old_path,
        "newPath": new_path,
        "item": entry.to_response()
    }


# ============ 下载 ============

@router.get("/download/{path:path}")
async def download_file(
    path: str,
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_download())
):
    """下载文件（支持 ?token= 携带令牌）"""
    file_path = await run_in_threadpool(service.get_file_path, path)
    return FileResponse(file_path, filename=file_path.name, content_disposition_type="attachment")


@router.get("/download-folder/{path:path}")
async def download_folder(
    path: str,
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_download())
):
    """打包下载文件夹（zip 流）"""
    folder = await run_in_threadpool(service.get_folder_path, path)
    archive_name = f"{folder.name or 'files'}.zip"
    logger.info(f"用户 {user.email} 打包下载文件夹: {path or '/'}")

    return StreamingResponse(
        generate_zip_stream(folder, service.root, get_settings().zip_compress_level),
        media_type="application/zip",
        headers={"Content-Disposition": content_disposition(archive_name)}
    )


# ============ 浏览与删除 ============

@router.get("")
async def list_files(
    directory: str = Query("", description="目录相对路径，为空则为根目录"),
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_action(Action.VIEW))
):
    """列出目录内容"""
    entries = await run_in_threadpool(service.list_directory, directory)
    return [entry.to_response() for entry in entries]


@router.delete("/{path:path}")
async def delete_item(
    path: str,
    service: FileManagerService = Depends(get_file_service),
    user: TokenData = Depends(require_action(Action.EDIT))
):
    """删除文件或目录（目录递归删除）"""
    is_directory = await run_in_threadpool(service.delete, path)
    return {"message": f"{'Directory' if is_directory else 'File'} deleted successfully"}

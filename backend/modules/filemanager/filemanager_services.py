"""
文件管理业务逻辑
所有路径均相对当前根目录，经 safe_join 校验后才会触碰文件系统
"""

import os
import shutil
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles
from fastapi import UploadFile

from core.config import Settings, get_settings
from core.directory import DirectoryConfigService
from core.errors import (
    BadRequestException, ConflictException, NotFoundException,
    PayloadTooLargeException, PathOutsideRootException, FileSystemException,
    ErrorCode
)
from utils.paths import normalize_relative, safe_join, to_relative, validate_name

from .filemanager_schemas import FileEntry

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024


@contextmanager
def filesystem_errors(action: str):
    """把底层 OSError 统一转换为 FileSystemException（500）"""
    try:
        yield
    except OSError as e:
        logger.error(f"{action}失败: {e}", exc_info=True)
        raise FileSystemException(f"Failed to {action}") from e


class FileManagerService:
    """文件管理服务"""

    def __init__(self, directories: DirectoryConfigService, settings: Optional[Settings] = None):
        self.directories = directories
        self.settings = settings or get_settings()

    @property
    def root(self) -> Path:
        return self.directories.root

    def resolve(self, relative: str) -> Path:
        return safe_join(self.root, relative)

    def ensure_parent_is_directory(self, path: Path):
        """
        最近的已存在祖先必须是目录，否则 mkdir 会在半路碰到文件

        Raises:
            BadRequestException: 路径中某一级是文件
        """
        for ancestor in path.parents:
            if os.path.lexists(ancestor):
                if not ancestor.is_dir():
                    raise BadRequestException(
                        f"Not a directory: {to_relative(self.root, ancestor)}"
                    )
                return

    def build_entry(self, path: Path, stat_result: Optional[os.stat_result] = None) -> FileEntry:
        """根据 stat 信息生成目录项"""
        st = stat_result or path.stat()
        is_directory = path.is_dir()
        return FileEntry(
            name=path.name,
            relative_path=to_relative(self.root, path),
            is_directory=is_directory,
            size=0 if is_directory else st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
        )

    # ============ 浏览 ============

    def list_directory(self, directory: str = "") -> List[FileEntry]:
        """
        列出目录内容：目录在前，然后按名称排序（区分大小写）

        Raises:
            NotFoundException: 目录不存在、不是目录或越出根目录
        """
        try:
            path = self.resolve(directory)
        except PathOutsideRootException:
            raise NotFoundException("Directory not found")

        if not path.is_dir():
            raise NotFoundException("Directory not found")

        entries = []
        with filesystem_errors("read directory"):
            with os.scandir(path) as it:
                for item in it:
                    child = path / item.name
                    try:
                        entries.append(self.build_entry(child, child.stat()))
                    except OSError as e:
                        # 读取与 stat 之间被删除，或是失效的链接
                        logger.warning(f"跳过无法读取的目录项 {child}: {e}")

        entries.sort(key=lambda e: (not e.is_directory, e.name))
        return entries

    # ============ 上传 ============

    def check_upload_request(self, files: List[UploadFile]):
        if not files:
            raise BadRequestException("No files uploaded")

        limit = self.settings.max_upload_files
        if len(files) > limit:
            raise BadRequestException(f"Too many files. Maximum is {limit} files per upload")

        allowed = {ext.lower().lstrip(".") for ext in self.settings.upload_allowed_extensions}
        if allowed:
            for file in files:
                ext = Path(file.filename or "").suffix.lower().lstrip(".")
                if ext not in allowed:
                    raise BadRequestException(
                        f"File type not allowed: {file.filename}",
                        code=ErrorCode.FILE_TYPE_NOT_ALLOWED
                    )

    async def save_uploads(self, files: List[UploadFile], directory: str = "") -> List[FileEntry]:
        """
        保存上传文件到指定目录（目录不存在则创建）

        同名文件直接覆盖；单个文件超过 max_upload_size 时丢弃已写入的临时文件，同名旧文件保持不变，
        此前已保存的文件保留。
        """
        self.check_upload_request(files)

        target_dir = self.resolve(directory)
        if target_dir.exists() and not target_dir.is_dir():
            raise ConflictException("Upload target is not a directory")
        self.ensure_parent_is_directory(target_dir)
        with filesystem_errors("create upload directory"):
            target_dir.mkdir(parents=True, exist_ok=True)

        saved = []
        for file in files:
            name = validate_name(os.path.basename(normalize_relative(file.filename or "")), "File name")
            target = safe_join(target_dir, name)
            if target.is_dir():
                raise ConflictException(f"A directory named {name} already exists")

            size = await self._write_upload(file, target)
            saved.append(self.build_entry(target))
            logger.info(f"文件上传成功: {to_relative(self.root, target)} ({size} 字节)")

        return saved

    async def _write_upload(self, file: UploadFile, target: Path) -> int:
        """先写入同目录的 .<name>.part 临时文件，校验通过后再替换目标，同名旧文件在失败时保持不变"""
        max_size = self.settings.max_upload_size
        part = target.with_name(f".{target.name}.part")
        written = 0
        too_large = False

        try:
            with filesystem_errors("save uploaded file"):
                async with aiofiles.open(part, "wb") as f:
                    while True:
                        chunk = await file.read(UPLOAD_CHUNK_SIZE)
                        if not chunk:
                            break
                        written += len(chunk)
                        if written > max_size:
                            too_large = True
                            break
                        await f.write(chunk)

                if not too_large:
                    os.replace(part, target)
        finally:
            if os.path.lexists(part):
                part.unlink()

        if too_large:
            logger.warning(f"上传文件超过大小限制，已丢弃: {file.filename}")
            raise PayloadTooLargeException(
                f"File {file.filename} exceeds the maximum upload size of "
                f"{max_size // (1024 * 1024)}MB",
                max_size=max_size
            )
        return written

    # ============ 下载 ============

    def get_file_path(self, relative: str) -> Path:
        """
        Raises:
            NotFoundException: 文件不存在或是目录
        """
        path = self.resolve(relative)
        if not path.is_file():
            raise NotFoundException("File not found")
        return path

    def get_folder_path(self, relative: str) -> Path:
        """
        Raises:
            NotFoundException: 目录不存在或不是目录
        """
        path = self.resolve(relative)
        if not path.is_dir():
            raise NotFoundException("Folder not found")
        return path

    # ============ 变更 ============

    def create_directory(self, parent: str, name: Optional[str]) -> FileEntry:
        """
        新建目录，中间目录自动创建

        Raises:
            BadRequestException: 名称缺失或不合法
            ConflictException: 目标已存在
        """
        name = validate_name(name, "Directory name")
        target = safe_join(self.resolve(parent), name)

        if os.path.lexists(target):
            raise ConflictException("Directory already exists")
        self.ensure_parent_is_directory(target)

        with filesystem_errors("create directory"):
            target.mkdir(parents=True)

        logger.info(f"创建目录: {to_relative(self.root, target)}")
        return self.build_entry(target)

    def rename(self, old_path: Optional[str], new_name: Optional[str]) -> Tuple[str, str, FileEntry]:
        """
        同目录内重命名

        Returns:
            (原相对路径, 新相对路径, 新目录项)
        """
        if not old_path or not normalize_relative(old_path):
            raise BadRequestException("Old path is required")
        new_name = validate_name(new_name, "New name")

        source = self.resolve(old_path)
        if source == self.root:
            raise BadRequestException("Cannot rename the root directory")
        if not os.path.lexists(source):
            raise NotFoundException("File or directory not found")

        destination = safe_join(source.parent, new_name)
        if os.path.lexists(destination):
            raise ConflictException("A file or directory with this name already exists")

        old_relative = to_relative(self.root, source)
        with filesystem_errors("rename"):
            os.rename(source, destination)

        new_relative = to_relative(self.root, destination)
        logger.info(f"重命名: {old_relative} -> {new_relative}")
        return old_relative, new_relative, self.build_entry(destination)

    def delete(self, relative: str) -> bool:
        """
        删除文件或目录（目录递归删除）

        Returns:
            被删除的是否为目录
        """
        path = self.resolve(relative)
        if path == self.root:
            raise BadRequestException("Cannot delete the root directory")
        if not os.path.lexists(path):
            raise NotFoundException("File or directory not found")

        # 符号链接只删除链接本身
        is_directory = path.is_dir() and not path.is_symlink()
        with filesystem_errors("delete"):
            if is_directory:
                shutil.rmtree(path)
            else:
                path.unlink()

        logger.info(f"删除{'目录' if is_directory else '文件'}: {to_relative(self.root, path)}")
        return is_directory

"""
文件夹打包下载
边压缩边输出，不在内存中缓存整个压缩包
"""

import os
import logging
import zipfile
from pathlib import Path
from typing import Generator, Iterator, Tuple

from utils.paths import is_within

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class _StreamBuffer:
    """
    只追加、不可 seek 的写缓冲

    ZipFile 检测到输出不可 seek 时会改用数据描述符写入条目头，
    因此已写出的字节无需回填，可以随时取走。
    """

    def __init__(self):
        self._chunks = []
        self._position = 0

    def write(self, data) -> int:
        if data:
            self._chunks.append(bytes(data))
            self._position += len(data)
        return len(data)

    def tell(self) -> int:
        return self._position

    def flush(self):
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def iter_folder_entries(folder: Path, root: Path) -> Iterator[Tuple[Path, str]]:
    """
    遍历文件夹，返回 (绝对路径, 压缩包内路径)

    目录条目以 / 结尾，空目录因此得以保留；
    通过符号链接指向根目录之外的条目会被跳过。
    """
    folder = Path(folder)
    root = Path(root).resolve()

    for current, dirs, files in os.walk(folder):
        current_path = Path(current)
        dirs.sort()

        for name in list(dirs):
            path = current_path / name
            if path.is_symlink() and not is_within(root, path.resolve()):
                logger.warning(f"打包时跳过指向根目录之外的链接: {path}")
                dirs.remove(name)
                continue
            yield path, path.relative_to(folder).as_posix() + "/"

        for name in sorted(files):
            path = current_path / name
            if not is_within(root, path.resolve()):
                logger.warning(f"打包时跳过指向根目录之外的链接: {path}")
                continue
            if not path.is_file():
                continue
            yield path, path.relative_to(folder).as_posix()


def _zip_info(path: Path, arcname: str, compress_level: int) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo.from_file(path, arcname)
    if not info.is_dir():
        info.compress_type = zipfile.ZIP_DEFLATED
        # Python 3.13 起 ZipInfo 才公开 compress_level，更早的版本使用 zlib 默认级别
        if hasattr(info, "compress_level"):
            info.compress_level = compress_level
    return info


def generate_zip_stream(
    folder: Path,
    root: Path,
    compress_level: int = 9,
    chunk_size: int = CHUNK_SIZE
) -> Generator[bytes, None, None]:
    """
    逐块生成文件夹的 zip 数据

    读取或压缩出错时异常直接抛出，由服务器中断响应。
    """
    buffer = _StreamBuffer()
    count = 0

    with zipfile.ZipFile(
        buffer, mode="w", compression=zipfile.ZIP_DEFLATED,
        compresslevel=compress_level, allowZip64=True
    ) as zf:
        for path, arcname in iter_folder_entries(folder, root):
            info = _zip_info(path, arcname, compress_level)
            if info.is_dir():
                zf.writestr(info, b"")
            else:
                with open(path, "rb") as src, zf.open(info, "w") as dest:
                    while True:
                        chunk = src.read(chunk_size)
                        if not chunk:
                            break
                        dest.write(chunk)

                        data = buffer.drain()
                        if data:
                            yield data
            count += 1

            data = buffer.drain()
            if data:
                yield data

    # 写入中央目录
    data = buffer.drain()
    if data:
        yield data

    logger.info(f"文件夹打包完成: {folder} ({count} 个条目)")

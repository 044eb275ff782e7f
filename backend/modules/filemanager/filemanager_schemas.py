"""
文件管理数据验证模型
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """请求/响应字段统一使用驼峰命名"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ 目录项 ============

class FileEntry(CamelModel):
    """目录项（文件或目录）"""
    name: str
    relative_path: str = Field(..., description="相对根目录的路径，使用正斜杠")
    is_directory: bool
    size: int = 0
    modified_at: datetime

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ============ 请求体 ============

class DirectoryCreate(CamelModel):
    """新建目录"""
    name: Optional[str] = Field(None, description="目录名称")
    path: str = Field("", description="父目录相对路径，为空则在根目录")


class RenameRequest(CamelModel):
    """重命名文件或目录"""
    old_path: Optional[str] = Field(None, description="原相对路径")
    new_name: Optional[str] = Field(None, description="新名称（单级）")


class DirectoryConfigUpdate(CamelModel):
    """设置根目录"""
    directory_path: Optional[str] = Field(None, description="服务器上已存在的绝对路径")


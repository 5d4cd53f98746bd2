"""章节相关的 Pydantic Schema"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from timemachine.schemas.version import VersionResponse

ChapterStatus = Literal["draft", "in_progress", "completed"]


class ChapterCreate(BaseModel):
    title: str = Field(..., max_length=200, description="章节标题")
    content: str = Field("", description="章节正文")
    status: ChapterStatus = Field("draft", description="章节状态")


class ChapterUpdate(BaseModel):
    """章节保存请求 - 只允许列出的字段，未知字段直接拒绝"""
    title: Optional[str] = Field(None, max_length=200, description="章节标题")
    content: Optional[str] = Field(None, description="章节正文")
    status: Optional[ChapterStatus] = Field(None, description="章节状态")
    force: bool = Field(False, description="强制记录版本快照")
    skip: bool = Field(False, description="本次保存不记录版本快照")

    class Config:
        extra = "forbid"


class ChapterResponse(BaseModel):
    id: str
    title: str
    content: str
    word_count: int
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SaveResultResponse(BaseModel):
    """章节保存结果（附带快照结果）"""
    chapter: ChapterResponse
    snapshot: str = Field(..., description="created/skipped/failed")
    version: Optional[VersionResponse] = None
    reason: Optional[str] = Field(None, description="快照失败原因")

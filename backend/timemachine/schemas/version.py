"""章节版本相关的 Pydantic Schema"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from timemachine.models.chapter_version import ChapterVersion

PREVIEW_LENGTH = 200


class VersionResponse(BaseModel):
    """版本详情响应模型"""
    id: str
    chapter_id: str
    title: str
    content: str
    word_count: int
    summary: Optional[str] = None
    tags: List[str] = []
    source: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, version: ChapterVersion) -> "VersionResponse":
        return cls(
            id=version.id,
            chapter_id=version.chapter_id,
            title=version.title,
            content=version.content or "",
            word_count=version.word_count or 0,
            summary=version.summary,
            tags=version.tag_list,
            source=version.source,
            created_at=version.created_at,
        )


class VersionListItem(BaseModel):
    """版本列表条目（只带正文预览）"""
    id: str
    title: str
    word_count: int
    summary: Optional[str] = None
    tags: List[str] = []
    source: Optional[str] = None
    created_at: datetime
    preview: str

    @classmethod
    def from_model(cls, version: ChapterVersion) -> "VersionListItem":
        content = version.content or ""
        preview = content[:PREVIEW_LENGTH] + "..." if len(content) > PREVIEW_LENGTH else content
        return cls(
            id=version.id,
            title=version.title,
            word_count=version.word_count or 0,
            summary=version.summary,
            tags=version.tag_list,
            source=version.source,
            created_at=version.created_at,
            preview=preview,
        )


class VersionListResponse(BaseModel):
    """版本列表响应模型"""
    total: int
    items: List[VersionListItem]


class VersionUpdate(BaseModel):
    """版本更新请求（只允许补充摘要和标签）"""
    summary: Optional[str] = Field(None, max_length=2000, description="变更摘要")
    tags: Optional[List[str]] = Field(None, description="标签列表")

    class Config:
        extra = "forbid"


class DiffOpResponse(BaseModel):
    """单行差异"""
    type: str = Field(..., description="equal/insert/delete")
    line: str


class DiffStats(BaseModel):
    inserted: int
    deleted: int
    unchanged: int


class VersionDiffResponse(BaseModel):
    """版本差异响应模型"""
    version_id: str
    previous_version_id: Optional[str] = None
    ops: List[DiffOpResponse]
    stats: DiffStats
    summary: str
    tags: List[str]

"""章节版本历史模型 - 时光机快照"""
import json
import uuid
from typing import List

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index

from timemachine.database import Base
from timemachine.models.chapter import utcnow


class ChapterVersion(Base):
    """章节版本历史表（创建后只允许补充摘要和标签）"""
    __tablename__ = "chapter_versions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    chapter_id = Column(String(36), ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)

    # 快照内容（与章节脱钩的时间点副本）
    title = Column(String(200), nullable=False, comment="章节标题")
    content = Column(Text, nullable=False, default="", comment="章节正文")
    word_count = Column(Integer, default=0, comment="快照时的字数")

    # 差异摘要（由差异分析事后补充）
    summary = Column(Text, nullable=True, comment="相对上一版本的变更摘要")
    tags = Column(Text, nullable=True, comment="标签（JSON列表）")

    # 元数据
    source = Column(String(20), default="auto", comment="auto:保存时自动快照, manual:手动快照, restore:版本恢复")
    created_at = Column(DateTime, nullable=False, default=utcnow, comment="创建时间（时间线排序依据）")

    __table_args__ = (
        Index("idx_chapter_version_timeline", "chapter_id", "created_at"),
    )

    @property
    def tag_list(self) -> List[str]:
        """解析标签 JSON"""
        if not self.tags:
            return []
        try:
            tags = json.loads(self.tags)
        except json.JSONDecodeError:
            return []
        return [str(t) for t in tags] if isinstance(tags, list) else []

    def __repr__(self):
        return f"<ChapterVersion(id={self.id}, chapter_id={self.chapter_id}, source={self.source}, created_at={self.created_at})>"

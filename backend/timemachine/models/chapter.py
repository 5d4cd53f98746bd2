"""章节模型 - 正在编辑的章节文档"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Integer, DateTime

from timemachine.database import Base


def utcnow() -> datetime:
    """当前 UTC 时间（不带时区，兼容 SQLite）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Chapter(Base):
    """章节表"""
    __tablename__ = "chapters"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False, comment="章节标题")
    content = Column(Text, nullable=False, default="", comment="章节正文")
    word_count = Column(Integer, default=0, comment="字数统计")
    status = Column(String(20), default="draft", comment="draft:草稿, in_progress:写作中, completed:已完成")

    created_at = Column(DateTime, nullable=False, default=utcnow, comment="创建时间")
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow, comment="更新时间")

    def __repr__(self):
        return f"<Chapter(id={self.id}, title={self.title}, word_count={self.word_count})>"

"""数据模型 - 章节与章节版本"""
from .chapter import Chapter
from .chapter_version import ChapterVersion

__all__ = [
    "Chapter",          # 章节
    "ChapterVersion",   # 章节版本快照
]

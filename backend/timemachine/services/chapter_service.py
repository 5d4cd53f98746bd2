"""章节服务 - 章节读写与保存时自动快照"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timemachine.exceptions import ChapterNotFoundError, StoreUnavailableError
from timemachine.logger import get_logger
from timemachine.models.chapter import Chapter, utcnow
from timemachine.models.chapter_version import ChapterVersion
from timemachine.schemas.chapter import ChapterCreate, ChapterUpdate
from timemachine.services.snapshot_policy import DEFAULT_DELTA_THRESHOLD, should_snapshot
from timemachine.services.version_store import DEFAULT_RETENTION, VersionStore

logger = get_logger(__name__)


class SnapshotOutcome(str, Enum):
    """保存时的快照结果"""
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SaveResult:
    """章节保存结果：保存本身成功，快照结果单独返回"""
    chapter: Chapter
    snapshot: SnapshotOutcome
    version: Optional[ChapterVersion] = None
    reason: Optional[str] = None


class ChapterService:
    """章节服务"""

    def __init__(
        self,
        db: AsyncSession,
        version_store: Optional[VersionStore] = None,
        delta_threshold: int = DEFAULT_DELTA_THRESHOLD,
        retention: int = DEFAULT_RETENTION,
    ):
        self.db = db
        self.version_store = version_store or VersionStore(db)
        self.delta_threshold = delta_threshold
        self.retention = retention

    async def get_chapter(self, chapter_id: str) -> Chapter:
        result = await self.db.execute(select(Chapter).where(Chapter.id == chapter_id))
        chapter = result.scalar_one_or_none()
        if not chapter:
            raise ChapterNotFoundError(chapter_id)
        return chapter

    async def create_chapter(self, data: ChapterCreate) -> Chapter:
        chapter = Chapter(
            title=data.title,
            content=data.content,
            word_count=len(data.content),
            status=data.status,
        )
        self.db.add(chapter)
        await self.db.commit()
        await self.db.refresh(chapter)
        logger.info(f"章节创建成功: chapter_id={chapter.id}, title='{chapter.title}'")
        return chapter

    async def delete_chapter(self, chapter_id: str) -> None:
        """删除章节（版本由外键级联删除）"""
        chapter = await self.get_chapter(chapter_id)
        await self.db.delete(chapter)
        await self.db.commit()
        logger.info(f"章节删除成功: chapter_id={chapter_id}")

    async def save_chapter(self, chapter_id: str, update: ChapterUpdate, source: str = "auto") -> SaveResult:
        """
        保存章节

        先写入章节，再按快照策略决定是否记录版本。
        快照或清理失败只记录日志，不影响保存结果。

        Args:
            chapter_id: 章节ID
            update: 要修改的字段及快照标记（force/skip）
            source: 快照来源

        Returns:
            SaveResult
        """
        chapter = await self.get_chapter(chapter_id)
        previous_content = chapter.content or ""

        update_data = update.model_dump(exclude_unset=True, exclude={"force", "skip"})
        for field, value in update_data.items():
            if value is None:
                continue
            setattr(chapter, field, value)
        if update.content is not None:
            chapter.word_count = len(update.content)
        chapter.updated_at = utcnow()

        try:
            await self.db.commit()
            await self.db.refresh(chapter)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreUnavailableError(f"章节保存失败: chapter_id={chapter_id}, error={e}") from e

        # 已提交的章节脱离会话，快照失败回滚时不会被过期
        self.db.expunge(chapter)

        if not should_snapshot(
            previous_content,
            update.content,
            force=update.force,
            skip=update.skip,
            threshold=self.delta_threshold,
        ):
            return SaveResult(chapter=chapter, snapshot=SnapshotOutcome.SKIPPED)

        try:
            version = await self.version_store.capture(chapter, source=source)
        except StoreUnavailableError as e:
            logger.warning(f"[TimeMachine] 快照失败，不影响保存: chapter_id={chapter_id}, error={e}")
            return SaveResult(chapter=chapter, snapshot=SnapshotOutcome.FAILED, reason=str(e))

        await self._prune_quietly(chapter.id)
        return SaveResult(chapter=chapter, snapshot=SnapshotOutcome.CREATED, version=version)

    async def create_snapshot(self, chapter_id: str) -> ChapterVersion:
        """手动创建快照（存储错误直接抛出）"""
        chapter = await self.get_chapter(chapter_id)
        version = await self.version_store.capture(chapter, source="manual")
        await self._prune_quietly(chapter_id)
        return version

    async def _prune_quietly(self, chapter_id: str) -> None:
        try:
            await self.version_store.prune(chapter_id, keep=self.retention)
        except StoreUnavailableError as e:
            logger.warning(f"[TimeMachine] 版本清理失败: chapter_id={chapter_id}, error={e}")

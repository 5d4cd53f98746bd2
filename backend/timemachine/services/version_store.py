"""版本存储服务 - 章节快照的创建、查询、清理"""
import json
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timemachine.exceptions import StoreUnavailableError, VersionNotFoundError
from timemachine.logger import get_logger
from timemachine.models.chapter import Chapter, utcnow
from timemachine.models.chapter_version import ChapterVersion

logger = get_logger(__name__)

DEFAULT_RETENTION = 50
DEFAULT_LIST_LIMIT = 50


class VersionStore:
    """版本存储 - 只负责持久化，不做快照决策"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def capture(self, chapter: Chapter, source: str = "auto") -> ChapterVersion:
        """
        从章节当前状态创建新版本

        Args:
            chapter: 章节对象（只读取，不修改）
            source: 版本来源 (auto:自动快照, manual:手动快照, restore:版本恢复)

        Returns:
            新创建的版本
        """
        chapter_id = chapter.id
        content = chapter.content or ""
        try:
            created_at = await self._next_timestamp(chapter_id)
            version = ChapterVersion(
                chapter_id=chapter_id,
                title=chapter.title or "",
                content=content,
                word_count=len(content),
                source=source,
                created_at=created_at,
            )
            self.db.add(version)
            await self.db.commit()
            await self.db.refresh(version)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreUnavailableError(f"创建版本失败: chapter_id={chapter_id}, error={e}") from e

        logger.info(f"版本创建成功: chapter_id={chapter_id}, version_id={version.id}, source={source}, title='{version.title}'")
        return version

    async def get(self, version_id: str) -> Optional[ChapterVersion]:
        """获取单个版本，不存在返回 None"""
        result = await self.db.execute(select(ChapterVersion).where(ChapterVersion.id == version_id))
        return result.scalar_one_or_none()

    async def get_or_raise(self, version_id: str) -> ChapterVersion:
        version = await self.get(version_id)
        if not version:
            raise VersionNotFoundError(version_id)
        return version

    async def list_by_chapter(self, chapter_id: str, limit: int = DEFAULT_LIST_LIMIT) -> List[ChapterVersion]:
        """
        获取章节版本列表

        Args:
            chapter_id: 章节ID
            limit: 返回数量限制

        Returns:
            按创建时间倒序（最新在前）的版本列表
        """
        result = await self.db.execute(
            select(ChapterVersion)
            .where(ChapterVersion.chapter_id == chapter_id)
            .order_by(ChapterVersion.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_previous(self, version: ChapterVersion) -> Optional[ChapterVersion]:
        """时间线上紧邻的更早版本"""
        result = await self.db.execute(
            select(ChapterVersion)
            .where(
                ChapterVersion.chapter_id == version.chapter_id,
                ChapterVersion.created_at < version.created_at,
            )
            .order_by(ChapterVersion.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def prune(self, chapter_id: str, keep: int = DEFAULT_RETENTION) -> int:
        """
        只保留最近 keep 个版本，其余永久删除

        Returns:
            删除的版本数量（已满足保留条件时为 0）
        """
        try:
            result = await self.db.execute(
                select(ChapterVersion.id)
                .where(ChapterVersion.chapter_id == chapter_id)
                .order_by(ChapterVersion.created_at.desc())
                .offset(max(keep, 0))
            )
            stale_ids = list(result.scalars().all())
            if not stale_ids:
                return 0

            await self.db.execute(delete(ChapterVersion).where(ChapterVersion.id.in_(stale_ids)))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreUnavailableError(f"清理版本失败: chapter_id={chapter_id}, error={e}") from e

        logger.info(f"版本清理完成: chapter_id={chapter_id}, deleted={len(stale_ids)}, keep={keep}")
        return len(stale_ids)

    async def attach_summary(self, version_id: str, summary: Optional[str], tags: Optional[List[str]]) -> ChapterVersion:
        """补充版本的变更摘要和标签（版本唯一允许的修改）"""
        version = await self.get_or_raise(version_id)

        if summary is not None:
            version.summary = summary
        if tags is not None:
            version.tags = json.dumps(list(tags), ensure_ascii=False)

        try:
            await self.db.commit()
            await self.db.refresh(version)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreUnavailableError(f"保存版本摘要失败: version_id={version_id}, error={e}") from e

        logger.debug(f"版本摘要已更新: version_id={version_id}")
        return version

    async def _next_timestamp(self, chapter_id: str):
        """
        生成版本时间戳

        时钟没有越过该章节最新版本时顺延 1 微秒，保证同一章节内严格递增。
        """
        now = utcnow()
        result = await self.db.execute(
            select(ChapterVersion.created_at)
            .where(ChapterVersion.chapter_id == chapter_id)
            .order_by(ChapterVersion.created_at.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()
        if latest is not None and now <= latest:
            return latest + timedelta(microseconds=1)
        return now

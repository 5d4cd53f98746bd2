"""版本历史服务 - 版本列表、版本对比与差异摘要"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from timemachine.exceptions import StoreUnavailableError, VersionMismatchError
from timemachine.logger import get_logger
from timemachine.models.chapter_version import ChapterVersion
from timemachine.schemas.version import VersionUpdate
from timemachine.services.diff_summarizer import DiffSummarizer, DiffSummary
from timemachine.services.line_diff import DiffOp, diff_lines, diff_stats
from timemachine.services.version_store import DEFAULT_LIST_LIMIT, VersionStore

logger = get_logger(__name__)

MAX_LIST_LIMIT = 200


@dataclass
class VersionDiff:
    """两个版本的对比结果"""
    version_id: str
    previous_version_id: Optional[str]
    ops: List[DiffOp]
    summary: DiffSummary

    @property
    def stats(self) -> Dict[str, int]:
        return diff_stats(self.ops)


class HistoryService:
    """版本历史服务"""

    def __init__(
        self,
        version_store: VersionStore,
        summarizer: Optional[DiffSummarizer] = None,
        default_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self.version_store = version_store
        self.summarizer = summarizer or DiffSummarizer()
        self.default_limit = default_limit

    async def list_versions(self, chapter_id: str, limit: Optional[int] = None) -> List[ChapterVersion]:
        """章节版本列表（最新在前）"""
        limit = self.default_limit if limit is None else max(1, min(limit, MAX_LIST_LIMIT))
        return await self.version_store.list_by_chapter(chapter_id, limit=limit)

    async def get_version(self, version_id: str) -> ChapterVersion:
        return await self.version_store.get_or_raise(version_id)

    async def diff_versions(self, version_id: str, previous_version_id: Optional[str] = None) -> VersionDiff:
        """
        对比版本与上一版本

        Args:
            version_id: 较新的版本ID
            previous_version_id: 对比的旧版本ID（不传则取时间线上紧邻的更早版本，
                没有更早版本时与空文本对比）

        Returns:
            VersionDiff（摘要同时写回较新的版本）
        """
        current = await self.version_store.get_or_raise(version_id)

        if previous_version_id:
            previous = await self.version_store.get_or_raise(previous_version_id)
            if previous.chapter_id != current.chapter_id:
                raise VersionMismatchError(previous_version_id, current.chapter_id)
        else:
            previous = await self.version_store.get_previous(current)

        old_content = previous.content if previous else ""
        new_content = current.content or ""

        ops = diff_lines(old_content or "", new_content)
        summary = await self.summarizer.summarize(old_content or "", new_content)

        try:
            await self.version_store.attach_summary(current.id, summary.summary, summary.tags)
        except StoreUnavailableError as e:
            logger.warning(f"差异摘要保存失败: version_id={version_id}, error={e}")

        logger.info(
            f"版本对比完成: version_id={version_id}, previous_version_id={previous.id if previous else None}, "
            f"ops={len(ops)}, tags={summary.tags}"
        )
        return VersionDiff(
            version_id=current.id,
            previous_version_id=previous.id if previous else None,
            ops=ops,
            summary=summary,
        )

    async def update_version(self, version_id: str, update: VersionUpdate) -> ChapterVersion:
        """更新版本摘要/标签"""
        return await self.version_store.attach_summary(version_id, update.summary, update.tags)

"""版本恢复 - 将章节恢复到指定版本"""
from timemachine.exceptions import VersionMismatchError, VersionNotFoundError
from timemachine.logger import get_logger
from timemachine.schemas.chapter import ChapterUpdate
from timemachine.services.chapter_service import ChapterService, SaveResult
from timemachine.services.version_store import VersionStore

logger = get_logger(__name__)


class RestoreCoordinator:
    """版本恢复协调器"""

    def __init__(self, chapter_service: ChapterService, version_store: VersionStore):
        self.chapter_service = chapter_service
        self.version_store = version_store

    async def restore(self, chapter_id: str, version_id: str) -> SaveResult:
        """
        恢复章节到指定版本

        写回版本的标题和正文，并强制为恢复后的状态记录一个新版本，
        保证曾经出现过的每个章节状态都能找回。

        Raises:
            VersionNotFoundError: 版本不存在
            VersionMismatchError: 版本不属于该章节
            ChapterNotFoundError: 章节不存在
        """
        version = await self.version_store.get(version_id)
        if not version:
            raise VersionNotFoundError(version_id)

        if version.chapter_id != chapter_id:
            raise VersionMismatchError(version_id, chapter_id)

        result = await self.chapter_service.save_chapter(
            chapter_id,
            ChapterUpdate(title=version.title, content=version.content or "", force=True),
            source="restore",
        )

        logger.info(f"版本恢复成功: chapter_id={chapter_id}, version_id={version_id}, snapshot={result.snapshot.value}")
        return result

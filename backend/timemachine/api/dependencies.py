"""API 依赖 - 按请求组装时光机服务"""
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from timemachine.config import settings
from timemachine.database import get_db
from timemachine.exceptions import (
    ChapterNotFoundError,
    StoreUnavailableError,
    TimeMachineError,
    VersionMismatchError,
    VersionNotFoundError,
)
from timemachine.services.ai_service import AIService, create_default_ai_service
from timemachine.services.chapter_service import ChapterService
from timemachine.services.diff_summarizer import DiffSummarizer
from timemachine.services.history_service import HistoryService
from timemachine.services.restore_coordinator import RestoreCoordinator
from timemachine.services.version_store import VersionStore


def get_ai_service() -> AIService:
    """AI服务（按环境变量配置创建，未配置时 is_available() 为 False）"""
    return create_default_ai_service()


def get_version_store(db: AsyncSession = Depends(get_db)) -> VersionStore:
    return VersionStore(db)


def get_chapter_service(
    db: AsyncSession = Depends(get_db),
    version_store: VersionStore = Depends(get_version_store),
) -> ChapterService:
    return ChapterService(
        db,
        version_store=version_store,
        delta_threshold=settings.snapshot_delta_threshold,
        retention=settings.version_retention,
    )


def get_history_service(
    version_store: VersionStore = Depends(get_version_store),
    ai_service: AIService = Depends(get_ai_service),
) -> HistoryService:
    summarizer = DiffSummarizer(ai_service=ai_service, timeout=settings.diff_summary_timeout)
    return HistoryService(version_store, summarizer=summarizer, default_limit=settings.version_list_limit)


def get_restore_coordinator(
    chapter_service: ChapterService = Depends(get_chapter_service),
    version_store: VersionStore = Depends(get_version_store),
) -> RestoreCoordinator:
    return RestoreCoordinator(chapter_service, version_store)


def to_http_exception(error: TimeMachineError) -> HTTPException:
    """时光机异常转换为 HTTP 错误"""
    if isinstance(error, ChapterNotFoundError):
        return HTTPException(status_code=404, detail="章节不存在")
    if isinstance(error, VersionNotFoundError):
        return HTTPException(status_code=404, detail="版本不存在")
    if isinstance(error, VersionMismatchError):
        return HTTPException(status_code=409, detail="版本不属于该章节")
    if isinstance(error, StoreUnavailableError):
        return HTTPException(status_code=503, detail="存储不可用，请稍后重试")
    return HTTPException(status_code=500, detail=str(error))

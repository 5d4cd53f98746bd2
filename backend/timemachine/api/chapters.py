"""章节API - 章节保存（自动快照）、手动快照、版本列表与恢复"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from timemachine.api.dependencies import (
    get_chapter_service,
    get_history_service,
    get_restore_coordinator,
    to_http_exception,
)
from timemachine.exceptions import TimeMachineError, VersionMismatchError
from timemachine.logger import get_logger
from timemachine.schemas.chapter import ChapterCreate, ChapterResponse, ChapterUpdate, SaveResultResponse
from timemachine.schemas.version import VersionListItem, VersionListResponse, VersionResponse
from timemachine.services.chapter_service import ChapterService, SaveResult
from timemachine.services.history_service import MAX_LIST_LIMIT, HistoryService
from timemachine.services.restore_coordinator import RestoreCoordinator

router = APIRouter(prefix="/chapters", tags=["章节时光机"])
logger = get_logger(__name__)


def _save_result_response(result: SaveResult) -> SaveResultResponse:
    return SaveResultResponse(
        chapter=ChapterResponse.model_validate(result.chapter),
        snapshot=result.snapshot.value,
        version=VersionResponse.from_model(result.version) if result.version else None,
        reason=result.reason,
    )


@router.post("", response_model=ChapterResponse, summary="创建章节")
async def create_chapter(
    chapter_create: ChapterCreate,
    service: ChapterService = Depends(get_chapter_service)
):
    chapter = await service.create_chapter(chapter_create)
    return ChapterResponse.model_validate(chapter)


@router.get("/{chapter_id}", response_model=ChapterResponse, summary="获取章节")
async def get_chapter(
    chapter_id: str,
    service: ChapterService = Depends(get_chapter_service)
):
    try:
        chapter = await service.get_chapter(chapter_id)
    except TimeMachineError as e:
        raise to_http_exception(e)
    return ChapterResponse.model_validate(chapter)


@router.put("/{chapter_id}", response_model=SaveResultResponse, summary="保存章节（按规则自动快照）")
async def save_chapter(
    chapter_id: str,
    chapter_update: ChapterUpdate,
    service: ChapterService = Depends(get_chapter_service)
):
    """
    保存章节

    正文字数变动达到阈值时自动记录版本；force=true 强制记录，skip=true 跳过。
    快照失败不影响保存，结果在 snapshot 字段中返回。
    """
    try:
        result = await service.save_chapter(chapter_id, chapter_update)
    except TimeMachineError as e:
        raise to_http_exception(e)
    return _save_result_response(result)


@router.delete("/{chapter_id}", summary="删除章节")
async def delete_chapter(
    chapter_id: str,
    service: ChapterService = Depends(get_chapter_service)
):
    try:
        await service.delete_chapter(chapter_id)
    except TimeMachineError as e:
        raise to_http_exception(e)
    return {"message": "章节删除成功"}


@router.post("/{chapter_id}/snapshots", response_model=VersionResponse, summary="手动创建快照")
async def create_snapshot(
    chapter_id: str,
    service: ChapterService = Depends(get_chapter_service)
):
    try:
        version = await service.create_snapshot(chapter_id)
    except TimeMachineError as e:
        raise to_http_exception(e)
    return VersionResponse.from_model(version)


@router.get("/{chapter_id}/versions", response_model=VersionListResponse, summary="获取章节版本历史")
async def list_versions(
    chapter_id: str,
    limit: Optional[int] = Query(None, ge=1, le=MAX_LIST_LIMIT, description="返回数量（默认按配置）"),
    service: ChapterService = Depends(get_chapter_service),
    history: HistoryService = Depends(get_history_service)
):
    try:
        await service.get_chapter(chapter_id)
        versions = await history.list_versions(chapter_id, limit=limit)
    except TimeMachineError as e:
        raise to_http_exception(e)
    items = [VersionListItem.from_model(v) for v in versions]
    return VersionListResponse(total=len(items), items=items)


@router.post("/{chapter_id}/versions/{version_id}/restore", response_model=SaveResultResponse, summary="恢复到指定版本")
async def restore_version(
    chapter_id: str,
    version_id: str,
    coordinator: RestoreCoordinator = Depends(get_restore_coordinator)
):
    try:
        result = await coordinator.restore(chapter_id, version_id)
    except VersionMismatchError:
        logger.warning(f"恢复请求的版本不属于该章节: chapter_id={chapter_id}, version_id={version_id}")
        # 不泄露其他章节的版本，统一按不存在处理
        raise HTTPException(status_code=404, detail="版本不存在")
    except TimeMachineError as e:
        raise to_http_exception(e)
    return _save_result_response(result)

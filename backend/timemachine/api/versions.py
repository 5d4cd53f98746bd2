"""版本API - 版本详情、版本对比与差异摘要"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from timemachine.api.dependencies import get_history_service, to_http_exception
from timemachine.exceptions import TimeMachineError
from timemachine.logger import get_logger
from timemachine.schemas.version import (
    DiffOpResponse,
    DiffStats,
    VersionDiffResponse,
    VersionResponse,
    VersionUpdate,
)
from timemachine.services.history_service import HistoryService

router = APIRouter(prefix="/versions", tags=["版本历史"])
logger = get_logger(__name__)


@router.get("/{version_id}", response_model=VersionResponse, summary="获取版本详情")
async def get_version(
    version_id: str,
    history: HistoryService = Depends(get_history_service)
):
    try:
        version = await history.get_version(version_id)
    except TimeMachineError as e:
        raise to_http_exception(e)
    return VersionResponse.from_model(version)


@router.get("/{version_id}/diff", response_model=VersionDiffResponse, summary="对比版本差异")
async def diff_versions(
    version_id: str,
    previous_version_id: Optional[str] = Query(None, description="对比的旧版本ID（不传则取上一版本）"),
    history: HistoryService = Depends(get_history_service)
):
    """
    对比版本与上一版本的逐行差异，并生成变更摘要

    AI 未配置或调用失败时返回本地差异统计（标签含 local）。
    """
    try:
        result = await history.diff_versions(version_id, previous_version_id)
    except TimeMachineError as e:
        raise to_http_exception(e)

    return VersionDiffResponse(
        version_id=result.version_id,
        previous_version_id=result.previous_version_id,
        ops=[DiffOpResponse(**op.to_dict()) for op in result.ops],
        stats=DiffStats(**result.stats),
        summary=result.summary.summary,
        tags=result.summary.tags,
    )


@router.patch("/{version_id}", response_model=VersionResponse, summary="更新版本摘要和标签")
async def update_version(
    version_id: str,
    version_update: VersionUpdate,
    history: HistoryService = Depends(get_history_service)
):
    try:
        version = await history.update_version(version_id, version_update)
    except TimeMachineError as e:
        raise to_http_exception(e)
    logger.info(f"版本信息更新成功: version_id={version_id}")
    return VersionResponse.from_model(version)

"""快照策略 - 决定一次保存是否需要记录新版本"""
from typing import Optional

DEFAULT_DELTA_THRESHOLD = 50


def content_delta(previous_content: Optional[str], next_content: Optional[str]) -> int:
    """字数变化量（按字符数，不按行数）；未提交正文时视为无变化"""
    if next_content is None:
        return 0
    return abs(len(next_content) - len(previous_content or ""))


def should_snapshot(
    previous_content: Optional[str],
    next_content: Optional[str],
    force: bool = False,
    skip: bool = False,
    threshold: int = DEFAULT_DELTA_THRESHOLD,
) -> bool:
    """
    判断是否需要快照

    规则（按顺序）：skip 显式跳过优先；force 强制快照；
    否则字数变化达到阈值才快照，避免自动保存刷满历史。
    """
    if skip:
        return False
    if force:
        return True
    return content_delta(previous_content, next_content) >= threshold

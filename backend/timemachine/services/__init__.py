"""服务层 - 章节时光机（自动快照、版本历史、差异对比、版本恢复）"""
from .line_diff import DiffOp, diff_lines, split_lines, diff_stats
from .snapshot_policy import should_snapshot, content_delta
from .version_store import VersionStore
from .diff_summarizer import DiffSummarizer, DiffSummary, local_summary
from .chapter_service import ChapterService, SaveResult, SnapshotOutcome
from .restore_coordinator import RestoreCoordinator
from .history_service import HistoryService, VersionDiff
from .ai_service import AIService, create_user_ai_service, create_default_ai_service

__all__ = [
    # 行级差异
    "DiffOp",
    "diff_lines",
    "split_lines",
    "diff_stats",
    # 快照策略
    "should_snapshot",
    "content_delta",
    # 版本存储
    "VersionStore",
    # 差异摘要
    "DiffSummarizer",
    "DiffSummary",
    "local_summary",
    # 章节保存
    "ChapterService",
    "SaveResult",
    "SnapshotOutcome",
    # 版本恢复
    "RestoreCoordinator",
    # 版本历史
    "HistoryService",
    "VersionDiff",
    # AI服务
    "AIService",
    "create_user_ai_service",
    "create_default_ai_service",
]

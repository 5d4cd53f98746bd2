"""时光机异常定义"""


class TimeMachineError(Exception):
    """时光机异常基类"""


class ChapterNotFoundError(TimeMachineError):
    """章节不存在"""

    def __init__(self, chapter_id: str):
        self.chapter_id = chapter_id
        super().__init__(f"章节不存在: {chapter_id}")


class VersionNotFoundError(TimeMachineError):
    """版本不存在"""

    def __init__(self, version_id: str):
        self.version_id = version_id
        super().__init__(f"版本不存在: {version_id}")


class VersionMismatchError(TimeMachineError):
    """版本不属于请求的章节"""

    def __init__(self, version_id: str, chapter_id: str):
        self.version_id = version_id
        self.chapter_id = chapter_id
        super().__init__(f"版本不属于该章节: version_id={version_id}, chapter_id={chapter_id}")


class StoreUnavailableError(TimeMachineError):
    """存储不可用（数据库连接失败、写入失败等）"""


class CollaboratorUnavailableError(TimeMachineError):
    """AI 服务未配置、超时或调用失败"""

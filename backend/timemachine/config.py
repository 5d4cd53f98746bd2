"""应用配置 - 从环境变量和 .env 文件读取"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 应用
    app_name: str = "Novel Time Machine"
    debug: bool = False
    log_level: str = "INFO"

    # 数据库（桌面端默认使用本地 SQLite 文件）
    database_url: str = "sqlite+aiosqlite:///./time_machine.db"

    # AI 服务（用于生成版本差异摘要，未配置时使用本地统计）
    default_ai_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    anthropic_base_url: Optional[str] = None
    ollama_base_url: str = "http://127.0.0.1:11434"
    default_model: str = "gpt-4o-mini"
    default_temperature: float = 0.3
    default_max_tokens: int = 1024

    # 时光机
    snapshot_delta_threshold: int = 50  # 内容字数变动达到该值时自动快照
    version_retention: int = 50  # 每章最多保留的版本数
    version_list_limit: int = 50  # 版本列表默认返回数量
    diff_summary_timeout: float = 30.0  # AI 差异摘要超时（秒）

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

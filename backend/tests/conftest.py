"""测试公共夹具：内存 SQLite、会话、假 AI 服务、HTTP 客户端"""
import asyncio

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from timemachine import models  # noqa: F401
from timemachine.api.dependencies import get_ai_service
from timemachine.database import Base, create_session_factory, enable_sqlite_foreign_keys, get_db
from timemachine.main import app
from timemachine.models import Chapter
from timemachine.services.ai_service import AIService


class FakeAIService:
    """模拟 AI 服务：记录调用，按设定返回内容、延迟或抛错"""

    def __init__(self, content: str = "", available: bool = True, delay: float = 0.0, error: Exception = None):
        self.content = content
        self.available = available
        self.delay = delay
        self.error = error
        self.prompts = []

    def is_available(self) -> bool:
        return self.available

    async def generate_text(self, prompt: str, **kwargs):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return {"content": self.content}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(engine) -> AsyncSession:
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def chapter(db_session: AsyncSession) -> Chapter:
    """一个带两行正文的章节"""
    chapter = Chapter(title="第一章 启程", content="line1\nline2", word_count=11, status="draft")
    db_session.add(chapter)
    await db_session.commit()
    await db_session.refresh(chapter)
    return chapter


@pytest.fixture
async def other_chapter(db_session: AsyncSession) -> Chapter:
    chapter = Chapter(title="第二章 风起", content="另一章的正文", word_count=6, status="draft")
    db_session.add(chapter)
    await db_session.commit()
    await db_session.refresh(chapter)
    return chapter


@pytest.fixture
def fake_ai():
    """假 AI 服务工厂"""
    return FakeAIService


@pytest.fixture
async def client(engine):
    session_factory = create_session_factory(engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    # 未配置的 AI 服务：差异摘要走本地统计
    app.dependency_overrides[get_ai_service] = lambda: AIService(api_provider="")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

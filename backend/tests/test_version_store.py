"""Tests for VersionStore persistence, ordering and retention."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from timemachine.exceptions import StoreUnavailableError, VersionNotFoundError
from timemachine.models import Chapter, ChapterVersion
from timemachine.services.chapter_service import ChapterService
from timemachine.services.version_store import VersionStore


async def _count_versions(db: AsyncSession, chapter_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(ChapterVersion).where(ChapterVersion.chapter_id == chapter_id)
    )
    return result.scalar_one()


class TestCapture:
    @pytest.mark.asyncio
    async def test_capture_copies_chapter_state(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        version = await store.capture(chapter)

        assert version.id
        assert version.chapter_id == chapter.id
        assert version.title == "第一章 启程"
        assert version.content == "line1\nline2"
        assert version.word_count == 11
        assert version.source == "auto"
        assert version.summary is None
        assert version.tag_list == []
        assert version.created_at is not None

    @pytest.mark.asyncio
    async def test_capture_does_not_touch_chapter(self, db_session: AsyncSession, chapter: Chapter) -> None:
        updated_at = chapter.updated_at
        await VersionStore(db_session).capture(chapter, source="manual")
        await db_session.refresh(chapter)
        assert chapter.content == "line1\nline2"
        assert chapter.updated_at == updated_at

    @pytest.mark.asyncio
    async def test_capture_never_prunes(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        for _ in range(55):
            await store.capture(chapter)
        assert await _count_versions(db_session, chapter.id) == 55

    @pytest.mark.asyncio
    async def test_timestamps_strictly_increase(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        stamps = [(await store.capture(chapter)).created_at for _ in range(10)]
        assert all(earlier < later for earlier, later in zip(stamps, stamps[1:]))

    @pytest.mark.asyncio
    async def test_capture_failure_raises_store_unavailable(
        self, db_session: AsyncSession, chapter: Chapter, monkeypatch
    ) -> None:
        chapter_id = chapter.id

        async def broken_commit():
            raise OperationalError("INSERT INTO chapter_versions", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", broken_commit)
        with pytest.raises(StoreUnavailableError):
            await VersionStore(db_session).capture(chapter)
        monkeypatch.undo()

        assert await _count_versions(db_session, chapter_id) == 0


class TestLookup:
    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, db_session: AsyncSession) -> None:
        store = VersionStore(db_session)
        assert await store.get("missing") is None
        with pytest.raises(VersionNotFoundError):
            await store.get_or_raise("missing")

    @pytest.mark.asyncio
    async def test_list_is_newest_first_and_limited(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        created = [await store.capture(chapter) for _ in range(5)]

        listed = await store.list_by_chapter(chapter.id)
        assert [v.id for v in listed] == [v.id for v in reversed(created)]

        limited = await store.list_by_chapter(chapter.id, limit=2)
        assert [v.id for v in limited] == [created[4].id, created[3].id]

    @pytest.mark.asyncio
    async def test_list_only_includes_own_chapter(
        self, db_session: AsyncSession, chapter: Chapter, other_chapter: Chapter
    ) -> None:
        store = VersionStore(db_session)
        own = await store.capture(chapter)
        await store.capture(other_chapter)

        listed = await store.list_by_chapter(chapter.id)
        assert [v.id for v in listed] == [own.id]

    @pytest.mark.asyncio
    async def test_get_previous(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        first = await store.capture(chapter)
        second = await store.capture(chapter)

        previous = await store.get_previous(second)
        assert previous.id == first.id
        assert await store.get_previous(first) is None


class TestPrune:
    @pytest.mark.asyncio
    async def test_keeps_most_recent(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        created = [await store.capture(chapter) for _ in range(55)]

        deleted = await store.prune(chapter.id, 50)

        assert deleted == 5
        remaining = await store.list_by_chapter(chapter.id, limit=100)
        assert len(remaining) == 50
        assert {v.id for v in remaining} == {v.id for v in created[5:]}

    @pytest.mark.asyncio
    async def test_prune_is_idempotent(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        for _ in range(4):
            await store.capture(chapter)

        assert await store.prune(chapter.id, 3) == 1
        assert await store.prune(chapter.id, 3) == 0
        assert await _count_versions(db_session, chapter.id) == 3

    @pytest.mark.asyncio
    async def test_prune_leaves_other_chapters_alone(
        self, db_session: AsyncSession, chapter: Chapter, other_chapter: Chapter
    ) -> None:
        store = VersionStore(db_session)
        for _ in range(3):
            await store.capture(chapter)
            await store.capture(other_chapter)

        await store.prune(chapter.id, 1)

        assert await _count_versions(db_session, chapter.id) == 1
        assert await _count_versions(db_session, other_chapter.id) == 3


class TestAttachSummary:
    @pytest.mark.asyncio
    async def test_attach_summary(self, db_session: AsyncSession, chapter: Chapter) -> None:
        store = VersionStore(db_session)
        version = await store.capture(chapter)

        await store.attach_summary(version.id, "补写了结尾", ["结尾", "+120 chars"])

        fetched = await store.get(version.id)
        assert fetched.summary == "补写了结尾"
        assert fetched.tag_list == ["结尾", "+120 chars"]
        assert fetched.content == "line1\nline2"

    @pytest.mark.asyncio
    async def test_attach_summary_missing_version(self, db_session: AsyncSession) -> None:
        with pytest.raises(VersionNotFoundError):
            await VersionStore(db_session).attach_summary("missing", "x", [])


@pytest.mark.asyncio
async def test_deleting_chapter_cascades_to_versions(db_session: AsyncSession, chapter: Chapter) -> None:
    store = VersionStore(db_session)
    version = await store.capture(chapter)
    chapter_id = chapter.id

    await ChapterService(db_session, version_store=store).delete_chapter(chapter_id)
    db_session.expunge_all()

    assert await store.get(version.id) is None
    assert await _count_versions(db_session, chapter_id) == 0

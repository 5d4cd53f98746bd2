"""Tests for change summaries (AI collaborator and local fallback)."""

import pytest

from timemachine.exceptions import CollaboratorUnavailableError
from timemachine.services.ai_service import AIService
from timemachine.services.diff_summarizer import DiffSummarizer, local_summary


def test_local_summary_inserted_line():
    # "lineTWO" 加上换行符共 8 个字符
    result = local_summary("line1\nline2", "line1\nlineTWO\nline2")
    assert result.tags == ["local", "+8 chars", "+1 lines"]
    assert "增加 8" in result.summary


def test_local_summary_shrink_uses_negative_sign():
    result = local_summary("a\nb\nc\nd\ne", "a")
    assert result.tags == ["local", "-8 chars", "-4 lines"]
    assert "减少 8" in result.summary
    assert "减少 4" in result.summary


def test_local_summary_from_empty():
    result = local_summary("", "一\n二\n三")
    assert result.tags == ["local", "+5 chars", "+3 lines"]


def test_local_summary_no_change():
    result = local_summary("same", "same")
    assert result.tags == ["local", "+0 chars", "+0 lines"]


@pytest.mark.asyncio
async def test_without_ai_service_uses_local():
    summarizer = DiffSummarizer()
    result = await summarizer.summarize("a", "a\nb")
    assert result.tags[0] == "local"


@pytest.mark.asyncio
async def test_unconfigured_ai_service_uses_local():
    summarizer = DiffSummarizer(ai_service=AIService(api_provider="openai", api_key=""))
    result = await summarizer.summarize("a", "a\nb")
    assert result.tags == ["local", "+2 chars", "+1 lines"]


@pytest.mark.asyncio
async def test_unavailable_fake_is_never_called(fake_ai):
    ai = fake_ai(content='{"summary": "x", "tags": []}', available=False)
    result = await DiffSummarizer(ai_service=ai).summarize("a", "b")
    assert ai.prompts == []
    assert result.tags[0] == "local"


@pytest.mark.asyncio
async def test_ai_json_reply_accepted_verbatim(fake_ai):
    ai = fake_ai(content='{"summary": "主角改名并补写了结尾", "tags": ["人物", "结尾"]}')
    result = await DiffSummarizer(ai_service=ai).summarize("旧文本", "新文本")
    assert result.summary == "主角改名并补写了结尾"
    assert result.tags == ["人物", "结尾"]
    assert "旧文本" in ai.prompts[0]
    assert "新文本" in ai.prompts[0]


@pytest.mark.asyncio
async def test_ai_json_in_code_block(fake_ai):
    ai = fake_ai(content='好的：\n```json\n{"summary": "删减了对话", "tags": ["精简"]}\n```')
    result = await DiffSummarizer(ai_service=ai).summarize("a", "b")
    assert result.summary == "删减了对话"
    assert result.tags == ["精简"]


@pytest.mark.asyncio
async def test_ai_plain_text_reply_becomes_summary(fake_ai):
    ai = fake_ai(content="新版本扩写了打斗场面。")
    result = await DiffSummarizer(ai_service=ai).summarize("a", "b")
    assert result.summary == "新版本扩写了打斗场面。"
    assert result.tags == []


@pytest.mark.asyncio
async def test_ai_empty_reply_falls_back(fake_ai):
    ai = fake_ai(content="   ")
    result = await DiffSummarizer(ai_service=ai).summarize("a", "ab")
    assert result.tags == ["local", "+1 chars", "+0 lines"]


@pytest.mark.asyncio
async def test_ai_error_falls_back(fake_ai):
    ai = fake_ai(error=CollaboratorUnavailableError("connection refused"))
    result = await DiffSummarizer(ai_service=ai).summarize("a", "ab")
    assert result.tags[0] == "local"


@pytest.mark.asyncio
async def test_ai_unexpected_error_falls_back(fake_ai):
    ai = fake_ai(error=KeyError("choices"))
    result = await DiffSummarizer(ai_service=ai).summarize("a", "ab")
    assert result.tags[0] == "local"


@pytest.mark.asyncio
async def test_ai_timeout_falls_back(fake_ai):
    ai = fake_ai(content='{"summary": "太慢了", "tags": []}', delay=1.0)
    result = await DiffSummarizer(ai_service=ai, timeout=0.01).summarize("a", "ab")
    assert result.tags[0] == "local"


@pytest.mark.asyncio
async def test_generate_text_rejects_unconfigured_service():
    with pytest.raises(CollaboratorUnavailableError):
        await AIService(api_provider="anthropic").generate_text("hi")


def test_ollama_only_needs_model_name():
    assert AIService(api_provider="ollama", model_name="qwen2.5").is_available() is True
    assert AIService(api_provider="ollama").is_available() is False
    assert AIService(api_provider="unknown", api_key="k").is_available() is False

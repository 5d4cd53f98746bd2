"""版本差异摘要服务 - AI 生成变更描述，未配置或失败时使用本地统计"""
import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from timemachine.logger import get_logger
from timemachine.services.ai_service import AIService

logger = get_logger(__name__)

LOCAL_TAG = "local"

# AI 输入的单个版本最大字数，超出部分截断
MAX_PROMPT_CHARS = 6000

PROMPT_VERSION_DIFF = """请对比同一章节的两个版本，概括新版本相对旧版本做了哪些修改。

【旧版本】
{old_content}

【新版本】
{new_content}

要求：
1. 摘要用一到两句话，说明修改的重点（情节、人物、文风、篇幅等）
2. 标签 2-5 个，每个不超过 6 个字
3. 如果两个版本几乎没有区别，如实说明

请用JSON格式返回：
```json
{{
  "summary": "修改摘要",
  "tags": ["标签1", "标签2"]
}}
```

只返回JSON，不要其他说明。"""


@dataclass
class DiffSummary:
    """差异摘要结果"""
    summary: str
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary, "tags": list(self.tags)}


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def _count_lines(text: str) -> int:
    if not text:
        return 0
    return len(text.replace("\r\n", "\n").split("\n"))


def local_summary(old_content: str, new_content: str) -> DiffSummary:
    """本地差异统计（确定性，不访问网络）"""
    old_content = old_content or ""
    new_content = new_content or ""

    delta_chars = len(new_content) - len(old_content)
    delta_lines = _count_lines(new_content) - _count_lines(old_content)

    char_direction = "增加" if delta_chars >= 0 else "减少"
    line_direction = "增加" if delta_lines >= 0 else "减少"

    tags = [
        LOCAL_TAG,
        f"{_signed(delta_chars)} chars",
        f"{_signed(delta_lines)} lines",
    ]
    summary = f"本地差异统计：字符{char_direction} {abs(delta_chars)}，行数{line_direction} {abs(delta_lines)}。"
    return DiffSummary(summary=summary, tags=tags)


class DiffSummarizer:
    """版本差异摘要器"""

    def __init__(self, ai_service: Optional[AIService] = None, timeout: float = 30.0):
        """
        Args:
            ai_service: AI服务（可选，不传或未配置时使用本地统计）
            timeout: AI 调用超时（秒），超时后使用本地统计
        """
        self.ai_service = ai_service
        self.timeout = timeout

    @property
    def ai_enabled(self) -> bool:
        return self.ai_service is not None and self.ai_service.is_available()

    async def summarize(self, old_content: str, new_content: str) -> DiffSummary:
        """生成差异摘要，任何 AI 异常都回退到本地统计，不向上抛出"""
        if not self.ai_enabled:
            return local_summary(old_content, new_content)

        try:
            result = await asyncio.wait_for(
                self._summarize_with_ai(old_content or "", new_content or ""),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"AI差异摘要超时: timeout={self.timeout}s，使用本地统计")
            return local_summary(old_content, new_content)
        except Exception as e:
            logger.warning(f"AI差异摘要失败: {str(e)}，使用本地统计")
            return local_summary(old_content, new_content)

        if result is None:
            return local_summary(old_content, new_content)
        return result

    async def _summarize_with_ai(self, old_content: str, new_content: str) -> Optional[DiffSummary]:
        prompt = PROMPT_VERSION_DIFF.format(
            old_content=old_content[:MAX_PROMPT_CHARS] or "（空）",
            new_content=new_content[:MAX_PROMPT_CHARS] or "（空）",
        )
        result = await self.ai_service.generate_text(prompt=prompt, temperature=0.3)

        # generate_text 返回 Dict，需要提取 content 字段
        if isinstance(result, dict):
            response_text = result.get("content", "")
        else:
            response_text = str(result)

        response_text = (response_text or "").strip()
        if not response_text:
            logger.warning("AI差异摘要为空")
            return None

        data = self._parse_ai_response(response_text)
        if data is None:
            # 非 JSON 回复：整段作为摘要
            return DiffSummary(summary=response_text, tags=[])

        summary = str(data.get("summary") or "").strip()
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            tags = [tags]
        if not summary:
            return None
        return DiffSummary(summary=summary, tags=[str(t) for t in tags])

    def _parse_ai_response(self, response: str) -> Optional[Dict[str, Any]]:
        """解析AI响应（纯 JSON / 代码块 / 文本中的 JSON 对象）"""
        candidates = [response]

        match = re.search(r'```(?:json)?\s*(\{.*?\})\s*```', response, re.DOTALL)
        if match:
            candidates.append(match.group(1))

        match = re.search(r'\{[\s\S]*\}', response)
        if match:
            candidates.append(match.group(0))

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

        logger.warning("无法解析AI响应格式")
        return None

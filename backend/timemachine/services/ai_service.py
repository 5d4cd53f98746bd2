"""AI服务 - 调用外部文本生成服务（OpenAI 兼容接口 / Anthropic / Ollama）"""
from typing import Any, Dict, Optional

import httpx

from timemachine.config import settings as app_settings
from timemachine.exceptions import CollaboratorUnavailableError
from timemachine.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic", "ollama")

DEFAULT_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com",
    "ollama": "http://127.0.0.1:11434",
}


def _clean_url(url: Optional[str]) -> str:
    return (url or "").strip().rstrip("/")


class AIService:
    """AI 文本生成服务"""

    def __init__(
        self,
        api_provider: str,
        api_key: Optional[str] = None,
        api_base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 1024,
        timeout: float = 60.0,
    ):
        self.api_provider = (api_provider or "").lower()
        self.api_key = api_key or ""
        self.api_base_url = _clean_url(api_base_url) or DEFAULT_BASE_URLS.get(self.api_provider, "")
        self.model_name = model_name or ""
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def is_available(self) -> bool:
        """是否已配置（Ollama 只需要模型名，其他需要 API Key）"""
        if self.api_provider not in SUPPORTED_PROVIDERS:
            return False
        if self.api_provider == "ollama":
            return bool(self.model_name.strip())
        return bool(self.api_key.strip())

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        生成文本

        Returns:
            {"content": 生成的文本, "provider": 提供商, "model": 模型}
        """
        if not self.is_available():
            raise CollaboratorUnavailableError(f"AI 服务未配置: provider={self.api_provider or 'none'}")

        temperature = self.temperature if temperature is None else temperature
        max_tokens = self.max_tokens if max_tokens is None else max_tokens

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                if self.api_provider == "anthropic":
                    content = await self._query_anthropic(client, prompt, system_prompt, temperature, max_tokens)
                elif self.api_provider == "ollama":
                    content = await self._query_ollama(client, prompt, system_prompt, temperature)
                else:
                    content = await self._query_openai(client, prompt, system_prompt, temperature, max_tokens)
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError(f"AI 服务调用失败: provider={self.api_provider}, error={e}") from e

        return {"content": content, "provider": self.api_provider, "model": self.model_name}

    def _messages(self, prompt: str, system_prompt: Optional[str]):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def _query_openai(self, client, prompt, system_prompt, temperature, max_tokens) -> str:
        resp = await client.post(
            f"{self.api_base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model_name,
                "messages": self._messages(prompt, system_prompt),
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        resp.raise_for_status()
        data = resp.json()
        return data["choices"][0]["message"]["content"] or ""

    async def _query_anthropic(self, client, prompt, system_prompt, temperature, max_tokens) -> str:
        payload = {
            "model": self.model_name,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt

        resp = await client.post(
            f"{self.api_base_url}/v1/messages",
            headers={"x-api-key": self.api_key, "anthropic-version": "2023-06-01"},
            json=payload,
        )
        resp.raise_for_status()
        data = resp.json()
        return "".join(block.get("text", "") for block in data.get("content", []) if block.get("type") == "text")

    async def _query_ollama(self, client, prompt, system_prompt, temperature) -> str:
        resp = await client.post(
            f"{self.api_base_url}/api/chat",
            json={
                "model": self.model_name,
                "stream": False,
                "options": {"temperature": temperature},
                "messages": self._messages(prompt, system_prompt),
            },
        )
        resp.raise_for_status()
        data = resp.json()
        return data.get("message", {}).get("content", "")


def create_user_ai_service(
    api_provider: str,
    api_key: Optional[str],
    api_base_url: Optional[str],
    model_name: Optional[str],
    temperature: float,
    max_tokens: int,
) -> AIService:
    """按用户配置创建AI服务实例"""
    return AIService(
        api_provider=api_provider,
        api_key=api_key,
        api_base_url=api_base_url,
        model_name=model_name,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def create_default_ai_service() -> AIService:
    """从环境变量配置创建AI服务实例"""
    provider = (app_settings.default_ai_provider or "").lower()
    if provider == "anthropic":
        api_key, base_url = app_settings.anthropic_api_key, app_settings.anthropic_base_url
    elif provider == "ollama":
        api_key, base_url = None, app_settings.ollama_base_url
    else:
        api_key, base_url = app_settings.openai_api_key, app_settings.openai_base_url

    return create_user_ai_service(
        api_provider=provider,
        api_key=api_key,
        api_base_url=base_url,
        model_name=app_settings.default_model,
        temperature=app_settings.default_temperature,
        max_tokens=app_settings.default_max_tokens,
    )

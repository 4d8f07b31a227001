"""
LLM Provider Abstraction Layer
Supports Anthropic Claude and OpenAI GPT models, in free-text and forced tool-call modes
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .config import llm_config

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """Raised when the provider request fails or returns an error status."""


@dataclass
class ToolCall:
    """A structured invocation emitted by the model."""

    name: str
    arguments: Dict[str, Any]


@dataclass
class LLMResponse:
    """Provider-neutral view of a completion."""

    content: str
    model: str
    provider: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    usage: Dict[str, Any] = field(default_factory=dict)

    def find_tool_call(self, name: str) -> Optional[ToolCall]:
        return next((call for call in self.tool_calls if call.name == name), None)


class LLMProvider(ABC):
    """Base class for LLM providers.

    ``tools`` use the Anthropic shape (``name``, ``description``,
    ``input_schema``); providers translate as needed. ``tool_choice`` names the
    tool the model is forced to call.
    """

    name = "base"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError(f"{self.name} API key not configured.")
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=llm_config.request_timeout, transport=self._transport)

    async def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.name} API error: {e.response.status_code} {e.response.text[:500]}")
            raise LLMProviderError(
                f"{self.name} API request failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{self.name} API error: {str(e)}")
            raise LLMProviderError(f"{self.name} API request failed: {str(e)}") from e

    @abstractmethod
    async def query(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        *,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """Query the LLM with a prompt"""
        raise NotImplementedError


class ClaudeProvider(LLMProvider):
    """Anthropic Claude API provider"""

    name = "claude"

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=api_key if api_key is not None else llm_config.claude_api_key,
            model=model or llm_config.claude_model,
            max_tokens=llm_config.claude_max_tokens,
            transport=transport,
        )

    async def query(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        *,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """Query the Messages API"""

        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = tools
            if tool_choice:
                payload["tool_choice"] = {"type": "tool", "name": tool_choice}

        data = await self._post(
            llm_config.claude_api_url,
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
                "content-type": "application/json",
            },
            payload=payload,
        )

        texts: List[str] = []
        tool_calls: List[ToolCall] = []
        for block in data.get("content") or []:
            if block.get("type") == "text":
                texts.append(block.get("text", ""))
            elif block.get("type") == "tool_use" and isinstance(block.get("input"), dict):
                tool_calls.append(ToolCall(name=block.get("name", ""), arguments=block["input"]))

        return LLMResponse(
            content="\n".join(texts).strip(),
            model=data.get("model", self.model),
            provider=self.name,
            tool_calls=tool_calls,
            usage=data.get("usage", {}),
        )


class ChatGPTProvider(LLMProvider):
    """OpenAI Chat Completions provider"""

    name = "chatgpt"

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=api_key if api_key is not None else llm_config.openai_api_key,
            model=model or llm_config.openai_model,
            max_tokens=llm_config.openai_max_tokens,
            transport=transport,
        )

    @staticmethod
    def _to_openai_tool(tool: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("input_schema", {"type": "object"}),
            },
        }

    async def query(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        *,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """Query the Chat Completions API"""

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = [self._to_openai_tool(tool) for tool in tools]
            if tool_choice:
                payload["tool_choice"] = {"type": "function", "function": {"name": tool_choice}}

        data = await self._post(
            llm_config.openai_api_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            payload=payload,
        )

        message = (data.get("choices") or [{}])[0].get("message") or {}
        tool_calls: List[ToolCall] = []
        for call in message.get("tool_calls") or []:
            function = call.get("function") or {}
            try:
                arguments = json.loads(function.get("arguments") or "{}")
            except json.JSONDecodeError:
                logger.warning("Discarding tool call %s with malformed arguments", function.get("name"))
                continue
            if isinstance(arguments, dict):
                tool_calls.append(ToolCall(name=function.get("name", ""), arguments=arguments))

        return LLMResponse(
            content=(message.get("content") or "").strip(),
            model=data.get("model", self.model),
            provider=self.name,
            tool_calls=tool_calls,
            usage=data.get("usage", {}),
        )


class LLMProviderFactory:
    """Factory to create appropriate LLM provider"""

    ALIASES = {
        "claude": "claude",
        "anthropic": "claude",
        "chatgpt": "chatgpt",
        "openai": "chatgpt",
    }

    @staticmethod
    def create(provider_name: Optional[str] = None) -> LLMProvider:
        """
        Create LLM provider instance

        Args:
            provider_name: Provider alias or concrete model identifier; defaults
                to the configured ``LLM_PROVIDER``

        Returns:
            Configured LLM provider instance
        """
        requested = (provider_name or llm_config.default_provider or "").strip()
        normalized = requested.lower()

        alias = LLMProviderFactory.ALIASES.get(normalized)
        if alias == "claude":
            return ClaudeProvider()
        if alias == "chatgpt":
            return ChatGPTProvider()

        if normalized.startswith("claude"):
            return ClaudeProvider(model=requested)
        if normalized.startswith(("gpt", "o1", "o3", "o4")):
            return ChatGPTProvider(model=requested)

        raise ValueError(f"Unknown LLM provider: {provider_name}")

"""Single entry point for every LLM call made by the pipeline."""
from __future__ import annotations

from typing import Any, Dict, Optional

from datachat.core.errors import GenerationError
from datachat.core.log import get_logger, log_context, timeit

from .llm_providers import LLMProvider, LLMProviderError, LLMResponse

logger = get_logger(__name__)


class LLMCallStage:
    """Run one prompt through a provider with shared logging and error wrapping.

    Both the free-text SQL stage and the tool-constrained chart stage go
    through ``run``; provider failures surface as ``GenerationError``.
    """

    def __init__(self, provider: LLMProvider, stage: str) -> None:
        self.provider = provider
        self.stage = stage

    async def run(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        tool: Optional[Dict[str, Any]] = None,
        force_tool: bool = False,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        tools = [tool] if tool else None
        tool_choice = tool["name"] if tool and force_tool else None

        with log_context.scope(stage=self.stage), timeit(
            f"LLM call [{self.stage}]", logger=logger, unit="tool calls"
        ) as timer:
            try:
                response = await self.provider.query(
                    system_prompt,
                    prompt,
                    tools=tools,
                    tool_choice=tool_choice,
                    temperature=temperature,
                )
            except LLMProviderError as exc:
                raise GenerationError(f"LLM request failed during {self.stage}: {exc}") from exc
            timer.set_count(len(response.tool_calls))
            self._log_exchange(system_prompt, prompt, response)
        return response

    def _log_exchange(
        self,
        system_prompt: Optional[str],
        prompt: str,
        response: LLMResponse,
    ) -> None:
        """Log prompts and responses for troubleshooting."""
        logger.info(
            "LLM exchange stage=%s provider=%s model=%s usage=%s",
            self.stage,
            response.provider,
            response.model,
            response.usage,
        )
        if system_prompt:
            logger.debug("System prompt [%s]: %s", self.stage, system_prompt)
        logger.debug("User prompt [%s]: %s", self.stage, prompt)
        logger.debug(
            "Response [%s]: text=%d chars, tool_calls=%s",
            self.stage,
            len(response.content),
            [call.name for call in response.tool_calls],
        )

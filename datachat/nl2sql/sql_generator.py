"""
SQL Generation Stage
Turns the composed SQL prompt into a raw SQL string
"""
import re
from typing import Optional

from datachat.core.errors import GenerationError
from datachat.core.log import get_logger

from .llm_providers import LLMProvider
from .llm_stage import LLMCallStage

logger = get_logger(__name__)

_FENCED_BLOCK = re.compile(r"```[ \t]*(?:sql|postgresql|postgres)?[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCE_MARKER = re.compile(r"```[ \t]*(?:sql|postgresql|postgres)?", re.IGNORECASE)


def strip_code_fences(content: Optional[str]) -> str:
    """Remove Markdown fencing and surrounding whitespace from a model reply."""
    if not content:
        return ""
    text = content.strip()
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        text = fenced.group(1)
    return _FENCE_MARKER.sub("", text).strip()


class SQLGenerator:
    """Single free-text LLM call yielding unvalidated SQL."""

    def __init__(self, provider: LLMProvider):
        self.stage = LLMCallStage(provider, "sql_generation")

    async def generate_sql(self, prompt: str) -> str:
        """
        Generate SQL for a composed prompt

        Args:
            prompt: Output of ``build_sql_prompt``

        Returns:
            Raw SQL text; callers must validate it before execution

        Raises:
            GenerationError: provider failure or a reply without usable text
        """
        response = await self.stage.run(prompt)
        sql = strip_code_fences(response.content)
        if not sql:
            raise GenerationError("LLM response did not contain a SQL query")
        return sql

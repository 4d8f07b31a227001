"""
NL-to-SQL Configuration Module
Centralized configuration for LLM providers and pipeline safety settings
"""
import os

from pydantic import BaseModel, Field


class LLMProviderConfig(BaseModel):
    """Configuration for LLM providers"""

    default_provider: str = Field(
        default_factory=lambda: os.getenv("LLM_PROVIDER", "claude")
    )
    request_timeout: float = 60.0

    # Claude Configuration
    claude_api_key: str = Field(
        default_factory=lambda: os.getenv("CLAUDE_API_KEY", "")
    )
    claude_model: str = Field(
        default_factory=lambda: os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514")
    )
    claude_max_tokens: int = 2048
    claude_api_url: str = "https://api.anthropic.com/v1/messages"

    # OpenAI Configuration
    openai_api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", "")
    )
    openai_model: str = Field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    )
    openai_max_tokens: int = 2048
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"


class PipelineConfig(BaseModel):
    """Question-to-SQL and chart pipeline settings"""

    # Security settings
    blocked_sql_keywords: list[str] = [
        "drop", "delete", "truncate", "alter", "create",
        "insert", "update", "exec", "grant",
    ]
    blocked_sql_functions: list[str] = [
        "pg_sleep", "pg_read_file", "pg_read_binary_file", "pg_ls_dir",
        "pg_stat_file", "pg_terminate_backend", "pg_cancel_backend",
        "pg_reload_conf", "lo_import", "lo_export", "dblink", "dblink_exec",
        "set_config", "nextval", "setval", "lo_from_bytea", "lo_unlink",
        "pg_advisory_lock", "pg_advisory_xact_lock",
    ]

    # Chart settings
    chart_tool_name: str = "generate_graph"
    chart_sample_rows: int = 10
    chart_temperature: float = 0.1


# Global config instances
llm_config = LLMProviderConfig()
pipeline_config = PipelineConfig()

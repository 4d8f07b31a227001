"""
Natural-language question to SQL pipeline
Schema-grounded SQL generation, safety validation and chart specification
"""

from .chart_generator import ChartSpecGenerator
from .connection import ConnectionManager
from .credentials import ConnectionParams, CredentialResolver
from .executor import QueryExecutor, QueryResult
from .llm_providers import LLMProvider, LLMProviderError, LLMProviderFactory
from .pipeline import AskQuestionResult, GenerateChartResult, QueryPipeline
from .sql_generator import SQLGenerator
from .sql_validator import SQLSafetyValidator, validate_sql

__all__ = [
    "AskQuestionResult",
    "ChartSpecGenerator",
    "ConnectionManager",
    "ConnectionParams",
    "CredentialResolver",
    "GenerateChartResult",
    "LLMProvider",
    "LLMProviderError",
    "LLMProviderFactory",
    "QueryExecutor",
    "QueryPipeline",
    "QueryResult",
    "SQLGenerator",
    "SQLSafetyValidator",
    "validate_sql",
]

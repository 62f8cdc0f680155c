"""Extraction provider implementations."""

from treqy.infrastructure.llm.base import BaseExtractionProvider, CircuitBreakerState
from treqy.infrastructure.llm.factory import get_extraction_provider
from treqy.infrastructure.llm.openrouter import (
    OpenRouterProvider,
    build_data_uri,
    get_openrouter_provider,
    reset_openrouter_provider,
)
from treqy.infrastructure.llm.prompts import MATERIAL_EXTRACTION_PROMPT

__all__ = [
    # Base
    "BaseExtractionProvider",
    "CircuitBreakerState",
    # OpenRouter
    "OpenRouterProvider",
    "build_data_uri",
    "get_openrouter_provider",
    "reset_openrouter_provider",
    # Prompt
    "MATERIAL_EXTRACTION_PROMPT",
    # Factory
    "get_extraction_provider",
]

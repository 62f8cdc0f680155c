"""
Extraction provider factory.
"""

from treqy.core.interfaces import IExtractionProvider


def get_extraction_provider() -> IExtractionProvider:
    """Get the configured extraction provider."""
    from treqy.infrastructure.llm.openrouter import get_openrouter_provider

    return get_openrouter_provider()

"""Infrastructure layer implementations."""

from treqy.infrastructure import llm, storage

__all__ = ["storage", "llm"]

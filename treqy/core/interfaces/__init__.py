"""Core interfaces (ports) for dependency injection."""

from treqy.core.interfaces.llm import HealthStatus, IExtractionProvider
from treqy.core.interfaces.object_storage import IObjectStorage
from treqy.core.interfaces.storage import (
    ApprovalOutcome,
    ICatalogStore,
    IPendingMaterialStore,
    ISubmissionStore,
)

__all__ = [
    # LLM
    "IExtractionProvider",
    "HealthStatus",
    # Object storage
    "IObjectStorage",
    # Relational storage
    "ISubmissionStore",
    "IPendingMaterialStore",
    "ICatalogStore",
    "ApprovalOutcome",
]

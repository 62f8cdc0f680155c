"""
Dependency injection container for FastAPI.

Provides use case instances and the tenant to route handlers. Tests swap
any of these through app.dependency_overrides.
"""


from fastapi import Header

from treqy.application.use_cases import (
    BrowseCatalogUseCase,
    DeleteSubmissionUseCase,
    ExtractMaterialsUseCase,
    ReviewSubmissionUseCase,
    SubmitDocumentUseCase,
)

from treqy.core.exceptions import ValidationError
from treqy.core.interfaces import IExtractionProvider, IObjectStorage
from treqy.infrastructure.llm import get_extraction_provider
from treqy.infrastructure.storage.local_objects import get_object_storage


# Tenant
def get_studio_id(
    x_studio_id: str | None = Header(default=None, alias="X-Studio-ID"),
) -> str:
    """Resolve the studio the request acts for."""
    if not x_studio_id or not x_studio_id.strip():
        raise ValidationError("X-Studio-ID", "Studio ID header is required")
    return x_studio_id.strip()


# Infrastructure dependencies
def get_provider() -> IExtractionProvider:
    """Get extraction provider."""
    return get_extraction_provider()


def get_objects() -> IObjectStorage:
    """Get object storage."""
    return get_object_storage()


# Use case dependencies
def get_submit_document_use_case() -> SubmitDocumentUseCase:
    """Get submit document use case."""
    return SubmitDocumentUseCase()


def get_extract_materials_use_case() -> ExtractMaterialsUseCase:
    """Get extract materials use case."""
    return ExtractMaterialsUseCase()


def get_review_submission_use_case() -> ReviewSubmissionUseCase:
    """Get review submission use case."""
    return ReviewSubmissionUseCase()


def get_delete_submission_use_case() -> DeleteSubmissionUseCase:
    """Get delete submission use case."""
    return DeleteSubmissionUseCase()


def get_browse_catalog_use_case() -> BrowseCatalogUseCase:
    """Get browse catalog use case."""
    return BrowseCatalogUseCase()

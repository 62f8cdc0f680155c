"""Application use cases."""

from treqy.application.use_cases.browse_catalog import BrowseCatalogUseCase
from treqy.application.use_cases.delete_submission import DeleteSubmissionUseCase, DeletionResult
from treqy.application.use_cases.extract_materials import ExtractionOutcome, ExtractMaterialsUseCase
from treqy.application.use_cases.review_submission import ReviewSubmissionUseCase
from treqy.application.use_cases.submit_document import SubmitDocumentUseCase

__all__ = [
    "SubmitDocumentUseCase",
    "ExtractMaterialsUseCase",
    "ExtractionOutcome",
    "ReviewSubmissionUseCase",
    "DeleteSubmissionUseCase",
    "DeletionResult",
    "BrowseCatalogUseCase",
]

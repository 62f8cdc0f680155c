"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from treqy.application.dto.requests import (
    ApproveSubmissionRequest,
    EditPendingMaterialRequest,
    ManualExtractionRequest,
    SubmitDocumentRequest,
)
from treqy.application.dto.responses import (
    ApprovalResponse,
    DeletionResponse,
    DuplicateListResponse,
    DuplicateMatchResponse,
    ErrorResponse,
    ExtractionResponse,
    HealthResponse,
    ManufacturerGroupResponse,
    ManufacturerListResponse,
    ManufacturerResponse,
    MaterialExtractionResponse,
    MaterialListResponse,
    MaterialResponse,
    PendingMaterialListResponse,
    PendingMaterialResponse,
    ProviderHealthResponse,
    RejectionResponse,
    SubmissionListResponse,
    SubmissionResponse,
)

__all__ = [
    # Requests
    "SubmitDocumentRequest",
    "ManualExtractionRequest",
    "EditPendingMaterialRequest",
    "ApproveSubmissionRequest",
    # Responses
    "SubmissionResponse",
    "SubmissionListResponse",
    "MaterialExtractionResponse",
    "ManufacturerGroupResponse",
    "ExtractionResponse",
    "PendingMaterialResponse",
    "PendingMaterialListResponse",
    "MaterialResponse",
    "MaterialListResponse",
    "ManufacturerResponse",
    "ManufacturerListResponse",
    "DuplicateMatchResponse",
    "DuplicateListResponse",
    "ApprovalResponse",
    "RejectionResponse",
    "DeletionResponse",
    "ProviderHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]

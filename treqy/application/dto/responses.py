"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SubmissionResponse(BaseModel):
    """Submission record."""

    id: str
    studio_id: str
    project_id: str | None = None
    client_id: str | None = None
    file_name: str
    file_size: int
    mime_type: str
    object_path: str | None = None
    file_url: str | None = Field(default=None, description="Public URL of the stored document")
    notes: str | None = None
    status: str
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = None


class SubmissionListResponse(BaseModel):
    """Page of submissions."""

    submissions: list[SubmissionResponse] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int


class MaterialExtractionResponse(BaseModel):
    """One extracted material row."""

    name: str
    tag: str | None = None
    category: str
    subcategory: str | None = None
    location: str | None = None
    reference_model_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None


class ManufacturerGroupResponse(BaseModel):
    """Extracted materials attributed to one manufacturer."""

    manufacturer_name: str
    materials: list[MaterialExtractionResponse] = Field(default_factory=list)


class PendingMaterialResponse(BaseModel):
    """Provisional material awaiting review."""

    id: str
    submission_id: str
    manufacturer_name: str
    position: int
    name: str
    tag: str | None = None
    category: str
    subcategory: str | None = None
    location: str | None = None
    reference_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None
    status: str
    material_id: str | None = None
    approved_at: datetime | None = None


class PendingMaterialListResponse(BaseModel):
    """Provisional materials of a submission."""

    submission_id: str
    materials: list[PendingMaterialResponse] = Field(default_factory=list)
    total: int = 0


class ExtractionResponse(BaseModel):
    """Result of running extraction on a submission."""

    submission_id: str
    status: str
    groups: list[ManufacturerGroupResponse] = Field(default_factory=list)
    total_materials: int = 0
    pending_materials: list[PendingMaterialResponse] = Field(default_factory=list)


class MaterialResponse(BaseModel):
    """Catalog material."""

    id: str
    name: str
    tag: str | None = None
    category: str
    subcategory: str | None = None
    location: str | None = None
    reference_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None
    manufacturer_id: str | None = None
    submission_id: str | None = None
    project_ids: list[str] = Field(default_factory=list)
    created_at: datetime


class MaterialListResponse(BaseModel):
    """Page of catalog materials."""

    materials: list[MaterialResponse] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int


class ManufacturerResponse(BaseModel):
    """Catalog manufacturer."""

    id: str
    name: str
    created_at: datetime


class ManufacturerListResponse(BaseModel):
    """A studio's manufacturers."""

    manufacturers: list[ManufacturerResponse] = Field(default_factory=list)
    total: int = 0


class DuplicateMatchResponse(BaseModel):
    """Catalog materials one provisional row would duplicate."""

    pending_id: str
    matches: list[MaterialResponse] = Field(default_factory=list)


class DuplicateListResponse(BaseModel):
    """Duplicate candidates for a submission's pending rows."""

    submission_id: str
    duplicates: list[DuplicateMatchResponse] = Field(default_factory=list)
    total: int = 0


class ApprovalResponse(BaseModel):
    """What an approval committed."""

    submission_id: str
    status: str
    project_id: str | None = None
    materials: list[MaterialResponse] = Field(default_factory=list)
    manufacturers_created: list[ManufacturerResponse] = Field(default_factory=list)
    manufacturers_reused: int = 0
    linked_materials: list[MaterialResponse] = Field(
        default_factory=list,
        description="Existing catalog materials that provisional rows were linked to",
    )
    rejected_count: int = 0


class RejectionResponse(BaseModel):
    """Result of rejecting a submission."""

    submission_id: str
    status: str
    discarded_materials: int = 0


class DeletionResponse(BaseModel):
    """Result of deleting a submission."""

    submission_id: str
    deleted: bool = True
    discarded_materials: int = 0
    orphaned_object_path: str | None = Field(
        default=None,
        description="Stored object that could not be removed",
    )


class ProviderHealthResponse(BaseModel):
    """Health status of a single dependency."""

    available: bool
    provider: str | None = None
    model: str | None = None
    error: str | None = None
    response_time_ms: float | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    extraction: ProviderHealthResponse | None = None
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. SUBMISSION_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Diagnostic payload (raw model text, upstream status and body, parser output)",
    )
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)

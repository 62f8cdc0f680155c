"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from pydantic import BaseModel, Field


class SubmitDocumentRequest(BaseModel):
    """Request for document submission.

    File content is handled separately via UploadFile in the API layer.
    """

    project_id: str | None = Field(
        default=None,
        description="Project the schedule belongs to",
    )
    client_id: str | None = Field(
        default=None,
        description="Client the schedule was received from",
    )
    notes: str | None = Field(
        default=None,
        max_length=2000,
        description="Free-form notes from the uploader",
    )


class ManualExtractionRequest(BaseModel):
    """Extraction reply entered by an operator.

    Same format as the model reply: a JSON array of manufacturer groups,
    optionally surrounded by other text.
    """

    raw_text: str = Field(..., min_length=1, description="Reply text holding the JSON array")


class EditPendingMaterialRequest(BaseModel):
    """Operator corrections to a provisional material.

    Only fields that are set are applied.
    """

    manufacturer_name: str | None = Field(default=None, min_length=1)
    name: str | None = Field(default=None, min_length=1)
    tag: str | None = None
    category: str | None = Field(default=None, min_length=1)
    subcategory: str | None = None
    location: str | None = None
    reference_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None


class ApproveSubmissionRequest(BaseModel):
    """Request to commit a submission's provisional materials."""

    pending_ids: list[str] | None = Field(
        default=None,
        description="Provisional rows to commit; all pending rows when omitted",
    )
    project_id: str | None = Field(
        default=None,
        description="Project to link materials to; defaults to the submission's project",
    )
    links: dict[str, str] | None = Field(
        default=None,
        description="Provisional row id -> existing catalog material id to link "
        "instead of creating a new material",
    )

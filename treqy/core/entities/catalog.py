"""
Durable catalog entities: manufacturers and materials.

Rows here are owned by a studio and outlive the submission that produced them.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator


def normalize_name(name: str) -> str:
    """Normalize a name for case-insensitive matching."""
    return " ".join(name.split()).lower()


class Manufacturer(BaseModel):
    """A manufacturer in a studio's catalog."""

    id: str | None = None
    studio_id: str
    name: str
    normalized_name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def compute_normalized_name(self) -> "Manufacturer":
        """Auto-compute normalized_name from name if not set."""
        if not self.normalized_name:
            self.normalized_name = normalize_name(self.name)
        return self


class Material(BaseModel):
    """
    An approved material in the catalog.

    submission_id records provenance and is cleared if the submission is deleted.
    """

    id: str | None = None
    studio_id: str
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
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

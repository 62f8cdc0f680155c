"""
Extraction result entities.

Manufacturer groups and material rows proposed by the extraction step,
plus the provisional (pending) form persisted while awaiting review.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

UNSPECIFIED_MANUFACTURER = "UNSPECIFIED MANUFACTURER"
NOT_USED_MARKER = "NOT USED"
DEFAULT_CATEGORY = "Uncategorized"


class MaterialExtraction(BaseModel):
    """One proposed material row."""

    name: str
    tag: str | None = None
    category: str = DEFAULT_CATEGORY
    subcategory: str | None = None
    location: str | None = None
    reference_model_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None

    @property
    def is_not_used(self) -> bool:
        """True when the row is marked as not used in the schedule."""
        for value in (self.name, self.notes):
            if value and NOT_USED_MARKER in value.upper():
                return True
        return False


class ManufacturerGroup(BaseModel):
    """A proposed manufacturer and the materials attributed to it."""

    manufacturer_name: str = UNSPECIFIED_MANUFACTURER
    materials: list[MaterialExtraction] = Field(default_factory=list)

    @model_validator(mode="after")
    def default_manufacturer(self) -> "ManufacturerGroup":
        """Blank manufacturer names become the sentinel."""
        if not self.manufacturer_name or not self.manufacturer_name.strip():
            self.manufacturer_name = UNSPECIFIED_MANUFACTURER
        return self


class ExtractionResult(BaseModel):
    """Parsed groups with the material count reported alongside them."""

    groups: list[ManufacturerGroup] = Field(default_factory=list)
    raw_text: str = ""

    @property
    def total_materials(self) -> int:
        return sum(len(group.materials) for group in self.groups)


class PendingMaterialStatus(str, Enum):
    """Review status of a provisional material."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingMaterial(BaseModel):
    """
    A provisional material awaiting operator review.

    Owned by its submission until approval commits it to the catalog.
    """

    id: str | None = None
    studio_id: str
    submission_id: str
    manufacturer_name: str = UNSPECIFIED_MANUFACTURER
    position: int = 0
    name: str
    tag: str | None = None
    category: str = DEFAULT_CATEGORY
    subcategory: str | None = None
    location: str | None = None
    reference_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None
    status: PendingMaterialStatus = PendingMaterialStatus.PENDING
    material_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    approved_at: datetime | None = None

    @classmethod
    def from_extraction(
        cls,
        studio_id: str,
        submission_id: str,
        manufacturer_name: str,
        material: MaterialExtraction,
        position: int,
    ) -> "PendingMaterial":
        return cls(
            studio_id=studio_id,
            submission_id=submission_id,
            manufacturer_name=manufacturer_name,
            position=position,
            name=material.name,
            tag=material.tag,
            category=material.category,
            subcategory=material.subcategory,
            location=material.location,
            reference_sku=material.reference_model_sku,
            dimensions=material.dimensions,
            notes=material.notes,
        )

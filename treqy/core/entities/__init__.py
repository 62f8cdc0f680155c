"""Core domain entities."""

from treqy.core.entities.catalog import Manufacturer, Material, normalize_name
from treqy.core.entities.extraction import (
    DEFAULT_CATEGORY,
    NOT_USED_MARKER,
    UNSPECIFIED_MANUFACTURER,
    ExtractionResult,
    ManufacturerGroup,
    MaterialExtraction,
    PendingMaterial,
    PendingMaterialStatus,
)
from treqy.core.entities.submission import (
    ALLOWED_TRANSITIONS,
    Submission,
    SubmissionStatus,
    can_transition,
    ensure_transition,
)

__all__ = [
    # Submission entities
    "Submission",
    "SubmissionStatus",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "ensure_transition",
    # Extraction entities
    "ExtractionResult",
    "ManufacturerGroup",
    "MaterialExtraction",
    "PendingMaterial",
    "PendingMaterialStatus",
    "UNSPECIFIED_MANUFACTURER",
    "NOT_USED_MARKER",
    "DEFAULT_CATEGORY",
    # Catalog entities
    "Manufacturer",
    "Material",
    "normalize_name",
]

"""
Extraction response parsing and grouping.

Turns the free-form text returned by the completion model into validated
manufacturer groups. The model is told to return bare JSON but often wraps
it in prose or markdown fences, so the array is located by a permissive
bracket scan before it is decoded and validated.
"""

import json
import re
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from treqy.config import get_logger
from treqy.core.entities.extraction import (
    DEFAULT_CATEGORY,
    UNSPECIFIED_MANUFACTURER,
    ExtractionResult,
    ManufacturerGroup,
    MaterialExtraction,
)
from treqy.core.exceptions import MalformedExtractionResponseError, NoStructuredDataFoundError

logger = get_logger(__name__)

# First "[" through the last "]"
_JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

_NULL_STRINGS = {"null", "none", "n/a", "na", "-"}


def _clean_text(v: Any) -> str | None:
    """Coerce a scalar to a stripped string, mapping blanks and null markers to None."""
    if v is None:
        return None
    if isinstance(v, (dict, list)):
        raise ValueError("expected a scalar value")
    s = str(v).strip()
    if not s or s.lower() in _NULL_STRINGS:
        return None
    return s


# ============================================================================
# Pydantic Models for LLM Response Validation
# ============================================================================

class ExtractedMaterialPayload(BaseModel):
    """Validates one material object from the model response."""

    name: str = ""
    tag: str | None = None
    category: str = DEFAULT_CATEGORY
    subcategory: str | None = None
    location: str | None = None
    reference_model_sku: str | None = None
    dimensions: str | None = None
    notes: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return _clean_text(v) or ""

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> str:
        return _clean_text(v) or DEFAULT_CATEGORY

    @field_validator(
        "tag",
        "subcategory",
        "location",
        "reference_model_sku",
        "dimensions",
        "notes",
        mode="before",
    )
    @classmethod
    def coerce_optional(cls, v: Any) -> str | None:
        return _clean_text(v)


class ManufacturerGroupPayload(BaseModel):
    """Validates one manufacturer group from the model response."""

    manufacturer_name: str = UNSPECIFIED_MANUFACTURER
    materials: list[ExtractedMaterialPayload] = Field(default_factory=list)

    @field_validator("manufacturer_name", mode="before")
    @classmethod
    def default_manufacturer(cls, v: Any) -> str:
        return _clean_text(v) or UNSPECIFIED_MANUFACTURER

    @field_validator("materials", mode="before")
    @classmethod
    def default_materials(cls, v: Any) -> Any:
        return [] if v is None else v


_GROUPS_ADAPTER = TypeAdapter(list[ManufacturerGroupPayload])


def find_json_array(text: str) -> str | None:
    """
    Locate the first top-level JSON array candidate in free text.

    Returns the substring from the first "[" to the last "]", or None when
    the text holds no such span. The span is not guaranteed to be valid JSON.
    """
    if not text:
        return None
    match = _JSON_ARRAY_PATTERN.search(text)
    if not match:
        return None
    return match.group(0)


def _format_validation_errors(error: ValidationError) -> str:
    messages = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        messages.append(f"Validation error at '{field}': {err['msg']}")
    return "; ".join(messages)


def _build_groups(payloads: list[ManufacturerGroupPayload]) -> tuple[list[ManufacturerGroup], int]:
    """Convert validated payloads to domain groups, dropping unusable rows."""
    groups: list[ManufacturerGroup] = []
    skipped = 0

    for payload in payloads:
        materials: list[MaterialExtraction] = []
        for item in payload.materials:
            if not item.name:
                skipped += 1
                continue
            material = MaterialExtraction(**item.model_dump())
            if material.is_not_used:
                skipped += 1
                continue
            materials.append(material)

        # Empty groups pass through; review decides what to keep
        groups.append(
            ManufacturerGroup(
                manufacturer_name=payload.manufacturer_name,
                materials=materials,
            )
        )

    return groups, skipped


def parse_extraction_response(raw_text: str) -> ExtractionResult:
    """
    Parse the model's raw text into manufacturer groups.

    Args:
        raw_text: Full response text from the completion model

    Returns:
        ExtractionResult with groups, total material count and the raw text

    Raises:
        NoStructuredDataFoundError: If the text holds no bracketed span
        MalformedExtractionResponseError: If the span is not a valid list
            of manufacturer groups
    """
    json_str = find_json_array(raw_text)
    if json_str is None:
        logger.warning("extraction_no_json_array", raw_response_preview=(raw_text or "")[:300])
        raise NoStructuredDataFoundError(raw_text or "")

    try:
        raw_data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning("extraction_invalid_json", error=str(e))
        raise MalformedExtractionResponseError(raw_text, f"Invalid JSON syntax: {e}") from e

    try:
        payloads = _GROUPS_ADAPTER.validate_python(raw_data)
    except ValidationError as e:
        diagnostic = _format_validation_errors(e)
        logger.warning("extraction_validation_failed", errors=diagnostic)
        raise MalformedExtractionResponseError(raw_text, diagnostic) from e

    groups, skipped = _build_groups(payloads)
    result = ExtractionResult(groups=groups, raw_text=raw_text)

    logger.info(
        "extraction_parsed",
        groups=len(groups),
        total_materials=result.total_materials,
        skipped_rows=skipped,
    )
    return result

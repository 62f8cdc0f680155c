"""Core domain services."""

from treqy.core.services.document_intake import (
    ACCEPTED_MEDIA_TYPES,
    PDF_MEDIA_TYPE,
    build_object_path,
    detect_media_type,
    sanitize_filename,
    validate_upload,
)
from treqy.core.services.extraction_parser import (
    ExtractedMaterialPayload,
    ManufacturerGroupPayload,
    find_json_array,
    parse_extraction_response,
)

__all__ = [
    # Intake
    "ACCEPTED_MEDIA_TYPES",
    "PDF_MEDIA_TYPE",
    "validate_upload",
    "detect_media_type",
    "sanitize_filename",
    "build_object_path",
    # Parsing
    "find_json_array",
    "parse_extraction_response",
    "ExtractedMaterialPayload",
    "ManufacturerGroupPayload",
]

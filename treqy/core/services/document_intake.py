"""
Upload validation for submitted documents.

Only PDF schedules are accepted. The declared content type, the file
extension and the payload's magic bytes must all agree.
"""

import re
from pathlib import PurePosixPath

from treqy.core.exceptions import FileTooLargeError, InvalidDocumentTypeError, ValidationError

PDF_MEDIA_TYPE = "application/pdf"
ACCEPTED_MEDIA_TYPES = [PDF_MEDIA_TYPE]
ACCEPTED_EXTENSIONS = {".pdf": PDF_MEDIA_TYPE}
PDF_MAGIC = b"%PDF-"

# Some browsers send these for PDFs picked from unusual sources
_GENERIC_MEDIA_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def detect_media_type(
    content: bytes,
    filename: str,
    declared_type: str | None = None,
) -> str:
    """
    Determine the accepted media type of an upload.

    Raises:
        InvalidDocumentTypeError: If the upload is not a PDF
    """
    extension = PurePosixPath(filename or "").suffix.lower()
    from_extension = ACCEPTED_EXTENSIONS.get(extension)

    declared = (declared_type or "").split(";")[0].strip().lower()
    if declared not in _GENERIC_MEDIA_TYPES and declared not in ACCEPTED_MEDIA_TYPES:
        raise InvalidDocumentTypeError(filename, declared, ACCEPTED_MEDIA_TYPES)

    if from_extension is None:
        raise InvalidDocumentTypeError(filename, declared or extension or None, ACCEPTED_MEDIA_TYPES)

    if not content.startswith(PDF_MAGIC):
        raise InvalidDocumentTypeError(filename, "unrecognized content", ACCEPTED_MEDIA_TYPES)

    return from_extension


def validate_upload(
    content: bytes,
    filename: str,
    declared_type: str | None,
    max_size: int,
) -> str:
    """
    Validate an upload before anything is written.

    Returns:
        The accepted media type
    """
    if not filename or not filename.strip():
        raise ValidationError("file", "File name is required")
    if not content:
        raise ValidationError("file", "Uploaded file is empty", filename)
    if len(content) > max_size:
        raise FileTooLargeError(filename, len(content), max_size)
    return detect_media_type(content, filename, declared_type)


def sanitize_filename(filename: str) -> str:
    """Reduce a client file name to a safe single path segment."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "document.pdf"


def build_object_path(studio_id: str, submission_id: str, filename: str) -> str:
    """Object storage key for a submission's document."""
    return f"{studio_id}/{submission_id}/{sanitize_filename(filename)}"

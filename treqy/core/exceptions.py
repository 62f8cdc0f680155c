"""
Domain exceptions for the Treqy extraction pipeline.

Every error carries a machine-readable code and a details payload with
enough diagnostic data (raw upstream text, error bodies, parser messages)
for an operator to remediate by hand.
"""

from typing import Any


class TreqyError(Exception):
    """Base exception for all Treqy errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(TreqyError):
    """Base exception for storage operations."""

    pass


class StorageFailureError(StorageError):
    """Object storage read, write or delete failed."""

    def __init__(self, operation: str, path: str, reason: str):
        super().__init__(
            f"Object storage {operation} failed for '{path}': {reason}",
            code="STORAGE_FAILURE",
            details={"operation": operation, "path": path, "reason": reason},
        )


class PersistenceFailureError(StorageError):
    """Relational store write failed."""

    def __init__(
        self,
        operation: str,
        error: str,
        orphaned_object_path: str | None = None,
    ):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="PERSISTENCE_FAILURE",
            details={
                "operation": operation,
                "error": error,
                "orphaned_object_path": orphaned_object_path,
            },
        )


class SubmissionNotFoundError(StorageError):
    """Submission not found for this studio."""

    def __init__(self, submission_id: str):
        super().__init__(
            f"Submission not found: {submission_id}",
            code="SUBMISSION_NOT_FOUND",
            details={"submission_id": submission_id},
        )


class PendingMaterialNotFoundError(StorageError):
    """Provisional material not found on the submission."""

    def __init__(self, pending_id: str, submission_id: str):
        super().__init__(
            f"Pending material {pending_id} not found on submission {submission_id}",
            code="PENDING_MATERIAL_NOT_FOUND",
            details={"pending_id": pending_id, "submission_id": submission_id},
        )


class MaterialNotFoundError(StorageError):
    """Catalog material not found for this studio."""

    def __init__(self, material_id: str):
        super().__init__(
            f"Material not found: {material_id}",
            code="MATERIAL_NOT_FOUND",
            details={"material_id": material_id},
        )


# Extraction Exceptions
class ExtractionError(TreqyError):
    """Base exception for the extraction stages."""

    pass


class ExtractionServiceUnavailableError(ExtractionError):
    """The completion service could not produce a response."""

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        error_body: str | None = None,
    ):
        message = f"Extraction service unavailable: {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(
            message,
            code="EXTRACTION_SERVICE_UNAVAILABLE",
            details={
                "reason": reason,
                "status_code": status_code,
                "error_body": error_body,
            },
        )
        self.status_code = status_code
        self.error_body = error_body


class NoStructuredDataFoundError(ExtractionError):
    """The response text holds no bracketed JSON array."""

    def __init__(self, raw_text: str):
        super().__init__(
            "No JSON array found in extraction response",
            code="NO_STRUCTURED_DATA_FOUND",
            details={"raw_text": raw_text},
        )
        self.raw_text = raw_text


class MalformedExtractionResponseError(ExtractionError):
    """The bracketed substring is not a valid list of manufacturer groups."""

    def __init__(self, raw_text: str, diagnostic: str):
        super().__init__(
            f"Malformed extraction response: {diagnostic}",
            code="MALFORMED_EXTRACTION_RESPONSE",
            details={"raw_text": raw_text, "diagnostic": diagnostic},
        )
        self.raw_text = raw_text
        self.diagnostic = diagnostic


# Workflow Exceptions
class InvalidStateTransitionError(TreqyError):
    """Submission status change is not an edge of the state machine."""

    def __init__(self, submission_id: str | None, current: str, target: str):
        super().__init__(
            f"Cannot move submission from '{current}' to '{target}'",
            code="INVALID_STATE_TRANSITION",
            details={
                "submission_id": submission_id,
                "current": current,
                "target": target,
            },
        )
        self.current = current
        self.target = target


class SubmissionNotEditableError(TreqyError):
    """Provisional materials can only be edited while under review."""

    def __init__(self, submission_id: str, status: str):
        super().__init__(
            f"Submission {submission_id} is '{status}'; materials can only be "
            "edited while it is 'ready_for_review'",
            code="SUBMISSION_NOT_EDITABLE",
            details={"submission_id": submission_id, "status": status},
        )


# Validation Exceptions
class ValidationError(TreqyError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class InvalidDocumentTypeError(ValidationError):
    """Uploaded document is not an accepted media type."""

    def __init__(self, filename: str, media_type: str | None, allowed: list[str]):
        super().__init__(
            field="file",
            message=f"Unsupported document type '{media_type or 'unknown'}'. "
            f"Allowed: {', '.join(allowed)}",
        )
        self.code = "INVALID_DOCUMENT_TYPE"
        self.details.update(
            {
                "filename": filename,
                "media_type": media_type,
                "allowed": allowed,
            }
        )


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds size limit."""

    def __init__(self, filename: str, size: int, max_size: int):
        super().__init__(
            field="file",
            message=f"File '{filename}' is too large ({size} bytes, max {max_size})",
        )
        self.details.update(
            {
                "filename": filename,
                "size": size,
                "max_size": max_size,
            }
        )


class ConfigurationError(TreqyError):
    """Configuration error."""

    pass

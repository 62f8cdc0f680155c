"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
- details: diagnostic payload an operator needs to fix the input by hand
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from treqy.application.dto.responses import ErrorResponse
from treqy.config import get_logger
from treqy.core.exceptions import (
    ConfigurationError,
    ExtractionServiceUnavailableError,
    InvalidStateTransitionError,
    MalformedExtractionResponseError,
    MaterialNotFoundError,
    NoStructuredDataFoundError,
    PendingMaterialNotFoundError,
    StorageError,
    SubmissionNotEditableError,
    SubmissionNotFoundError,
    TreqyError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins, so subclasses come first
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    SubmissionNotFoundError: status.HTTP_404_NOT_FOUND,
    PendingMaterialNotFoundError: status.HTTP_404_NOT_FOUND,
    MaterialNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
    SubmissionNotEditableError: status.HTTP_409_CONFLICT,
    NoStructuredDataFoundError: 422,
    MalformedExtractionResponseError: 422,
    ExtractionServiceUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "SUBMISSION_NOT_FOUND": "Check the submission ID and the X-Studio-ID header; try GET /api/submissions.",
    "PENDING_MATERIAL_NOT_FOUND": "List the submission's materials with GET /api/submissions/{id}/materials.",
    "MATERIAL_NOT_FOUND": "List the catalog with GET /api/catalog/materials and link to an existing ID.",
    "INVALID_STATE_TRANSITION": "Reload the submission; its status changed or the action is not allowed from it.",
    "SUBMISSION_NOT_EDITABLE": "Materials can only be edited while the submission is ready_for_review.",
    "INVALID_DOCUMENT_TYPE": "Upload the finish schedule as a PDF file.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "EXTRACTION_SERVICE_UNAVAILABLE": "The extraction model is unreachable or misconfigured. Retry later.",
    "NO_STRUCTURED_DATA_FOUND": "The model replied without a JSON array. Inspect details.raw_text and re-run extraction.",
    "MALFORMED_EXTRACTION_RESPONSE": "The model returned invalid JSON. Inspect details.diagnostic and re-run extraction.",
    "STORAGE_FAILURE": "Object storage failed. Check the storage directory and server logs.",
    "PERSISTENCE_FAILURE": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The resource changed state. Reload and retry.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = _status_for(exc)

    if isinstance(exc, TreqyError):
        error_code = exc.code
        message = exc.message
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        details = None

    request_id = getattr(request.state, "request_id", None)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        status=status_code,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        details=details,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the registered exception handlers did not.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(TreqyError)
    async def treqy_exception_handler(request: Request, exc: TreqyError) -> JSONResponse:
        """Handle domain errors."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
            headers=getattr(exc, "headers", None),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    return {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "PAYLOAD_TOO_LARGE",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")

"""API middleware."""

from treqy.api.middleware.error_handler import ErrorHandlerMiddleware
from treqy.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]

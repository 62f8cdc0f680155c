"""API route modules."""

from treqy.api.routes.catalog import router as catalog_router
from treqy.api.routes.health import router as health_router
from treqy.api.routes.submissions import router as submissions_router

__all__ = [
    "health_router",
    "submissions_router",
    "catalog_router",
]

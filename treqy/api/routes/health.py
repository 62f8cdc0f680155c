"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from treqy.api.dependencies import get_provider
from treqy.application.dto.responses import HealthResponse, ProviderHealthResponse
from treqy.core.interfaces import IExtractionProvider

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/extraction", response_model=HealthResponse)
async def extraction_health(
    provider: IExtractionProvider = Depends(get_provider),
) -> HealthResponse:
    """
    Extraction provider health check.

    Verifies the API key is configured and the provider answers.
    """
    result = await provider.check_health()
    provider_status = ProviderHealthResponse(
        available=result.available,
        provider=result.provider,
        model=result.model,
        error=result.error,
        response_time_ms=result.response_time_ms,
    )

    return HealthResponse(
        status="healthy" if provider_status.available else "degraded",
        uptime_seconds=time.time() - _start_time,
        extraction=provider_status,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    import aiosqlite

    from treqy.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        start = time.time()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
        db_status = ProviderHealthResponse(
            available=True,
            provider="sqlite",
            response_time_ms=(time.time() - start) * 1000,
        )
    except (aiosqlite.Error, OSError) as e:
        db_status = ProviderHealthResponse(
            available=False,
            provider="sqlite",
            error=str(e),
        )

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )

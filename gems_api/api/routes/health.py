from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from gems_api.core.rate_limit import get_rate_limiter
from gems_api.schemas.rate_limit import ReadinessResponse
from gems_api.services.rate_limiter import SlidingWindowRateLimiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
) -> ReadinessResponse:
    """Readiness probe reporting the rate limit store.

    An unreachable store does not fail readiness: the limiter fails open, so
    the service still answers. The flag is exposed for monitoring.
    """

    store = limiter.store
    reachable = await store.ping() if store is not None else None
    return ReadinessResponse(
        status="ok",
        rate_limit_backend=limiter.backend,
        rate_limit_store_reachable=reachable,
    )

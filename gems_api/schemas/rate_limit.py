from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitCheckRequest(BaseModel):
    """Body of a quota check; the subject defaults to the caller's IP."""

    subject: str | None = Field(
        None,
        min_length=1,
        max_length=256,
        description="User id or address the quota belongs to",
    )


class RateLimitCheckResponse(BaseModel):
    allowed: bool
    limit: int = Field(..., ge=1)
    remaining: int = Field(..., ge=0)
    reset: int = Field(..., ge=0, description="Seconds until the window resets")
    degraded: bool = Field(
        False,
        description="True when the decision was not enforced by the shared store",
    )


class RateLimitPolicyResponse(BaseModel):
    route: str
    actions: int
    window_ms: int
    prefix: str


class ReadinessResponse(BaseModel):
    status: str
    rate_limit_backend: str
    rate_limit_store_reachable: bool | None = None

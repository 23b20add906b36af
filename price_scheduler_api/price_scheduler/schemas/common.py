"""
Common schemas.
"""

from pydantic import BaseModel
from typing import Optional


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = True


class RedisHealthResponse(HealthResponse):
    """Redis connectivity check."""
    redis: str
    error: Optional[str] = None

"""
FastAPI application entry point.
"""

import logging
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from redis.exceptions import RedisError

from price_scheduler.api.v1.router import router as v1_router
from price_scheduler.config import get_settings
from price_scheduler.deps import close_redis, get_redis
from price_scheduler.schemas.common import HealthResponse, RedisHealthResponse

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure root logging once."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    setup_logging(get_settings().log_level)
    yield
    await close_redis()


app = FastAPI(
    title="Shop Price Scheduler API",
    description="Bulk price adjustments, scheduled price changes and inventory edits for Shopify stores",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix="/api/v1")


@app.get("/api/v1/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(ok=True)


@app.get("/api/v1/health/redis", response_model=RedisHealthResponse, tags=["health"])
async def health_check_redis(redis=Depends(get_redis)):
    """Ping Redis; the schedule store is unusable without it."""
    try:
        await redis.ping()
    except (RedisError, OSError) as e:
        logger.warning(f"Redis health check failed: {e}")
        return RedisHealthResponse(ok=False, redis="disconnected", error=str(e))
    return RedisHealthResponse(ok=True, redis="connected")


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Shop Price Scheduler API",
        "version": "1.0.0",
        "docs": "/docs"
    }

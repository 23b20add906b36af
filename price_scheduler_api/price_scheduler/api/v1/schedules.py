"""
Scheduled price change API endpoints.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import Dict, Optional, Literal

from price_scheduler.config import get_settings
from price_scheduler.deps import get_schedule_store
from price_scheduler.core.auth import get_verified_shop, get_shop_client
from price_scheduler.core.errors import ScheduleValidationError, ProductResolutionError
from price_scheduler.core.schedule_store import ScheduleStore
from price_scheduler.core.security import sanitize_dict_for_logging
from price_scheduler.core.shopify_client import ShopifyClient, ShopifyError
from price_scheduler.core.ops.create_schedule import create_schedule
from price_scheduler.core.ops.run_due_schedules import run_due_schedules
from price_scheduler.core.ops.list_schedules import list_schedules
from price_scheduler.schemas.schedules import (
    ScheduleCreateResponse, ScheduleRunResponse, ScheduleListResponse, ScheduleDetailResponse
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ScheduleCreateResponse)
async def create_price_schedule(
    request: Request,
    shop: Dict = Depends(get_verified_shop),
    store: ScheduleStore = Depends(get_schedule_store),
    client: ShopifyClient = Depends(get_shop_client)
):
    """Store a deferred price change as PENDING."""
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON"
        )

    if isinstance(body, dict):
        logger.debug(f"Create schedule for {shop['shop']}: {sanitize_dict_for_logging(body)}")

    try:
        record = await create_schedule(store, client, shop["shop"], body)
    except (ScheduleValidationError, ProductResolutionError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ShopifyError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Catalog error while creating schedule: {str(e)}"
        )
    except Exception as e:
        logger.exception(f"Create schedule failed for {shop['shop']}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Server error while creating schedule: {str(e)}"
        )

    return ScheduleCreateResponse(id=record.id)


@router.post("/run", response_model=ScheduleRunResponse, response_model_exclude_none=True)
async def run_price_schedules(
    shop: Dict = Depends(get_verified_shop),
    store: ScheduleStore = Depends(get_schedule_store),
    client: ShopifyClient = Depends(get_shop_client)
):
    """
    Execute the shop's due schedules and reverts.

    Failed schedules are reported per record with ok=false; the call itself
    still succeeds.
    """
    try:
        result = await run_due_schedules(
            store, client, shop["shop"],
            batch_size=get_settings().schedule_batch_size
        )
    except Exception as e:
        logger.exception(f"Schedule run failed for {shop['shop']}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Server error while running schedules: {str(e)}"
        )

    return ScheduleRunResponse(**result)


@router.get("", response_model=ScheduleListResponse)
async def list_price_schedules(
    limit: int = Query(20),
    status_filter: Optional[Literal["PENDING", "RUNNING", "DONE", "FAILED"]] = Query(None, alias="status"),
    shop: Dict = Depends(get_verified_shop),
    store: ScheduleStore = Depends(get_schedule_store)
):
    """
    List schedules newest first (limit clamped to 1..100).

    `status` must be one of PENDING, RUNNING, DONE, FAILED; any other value
    is rejected with 422 instead of returning an empty list.
    """
    try:
        schedules = await list_schedules(store, shop["shop"], limit=limit, status=status_filter)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list schedules: {str(e)}"
        )

    return ScheduleListResponse(schedules=schedules)


@router.get("/{schedule_id}", response_model=ScheduleDetailResponse)
async def get_price_schedule(
    schedule_id: str,
    shop: Dict = Depends(get_verified_shop),
    store: ScheduleStore = Depends(get_schedule_store)
):
    """Get one schedule with its full payload."""
    record = await store.get(shop["shop"], schedule_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Schedule '{schedule_id}' not found"
        )
    return ScheduleDetailResponse(schedule=record)

"""
Main API router for v1.
"""

from fastapi import APIRouter
from price_scheduler.api.v1 import schedules, products, inventory

router = APIRouter()

router.include_router(schedules.router, prefix="/shops/{shop}/schedules", tags=["schedules"])
router.include_router(products.router, prefix="/shops/{shop}/products", tags=["products"])
router.include_router(inventory.router, prefix="/shops/{shop}/inventory", tags=["inventory"])

"""
Inventory schemas.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any


class InventoryLevelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inventory_item_id: str = Field(..., alias="inventoryItemId", min_length=1)
    location_id: str = Field(..., alias="locationId", min_length=1)


class InventoryLevelResponse(BaseModel):
    ok: bool = True
    available: int = 0


class InventoryQuantityUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inventory_item_id: str = Field(..., alias="inventoryItemId", min_length=1)
    quantity: int


class InventoryUpdateRequest(InventoryQuantityUpdate):
    """Set one quantity."""
    location_id: str = Field(..., alias="locationId", min_length=1)


class InventoryBulkUpdateRequest(BaseModel):
    """Set several quantities at one location."""
    model_config = ConfigDict(populate_by_name=True)

    location_id: str = Field(..., alias="locationId", min_length=1)
    updates: List[InventoryQuantityUpdate] = Field(..., min_length=1)


class InventoryUpdateResponse(BaseModel):
    ok: bool = True
    updated: int = 0


class LocationListResponse(BaseModel):
    ok: bool = True
    locations: List[Dict[str, Any]] = Field(default_factory=list)


class InventoryProductListResponse(BaseModel):
    ok: bool = True
    products: List[Dict[str, Any]] = Field(default_factory=list)

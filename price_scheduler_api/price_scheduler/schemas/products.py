"""
Product schemas.
"""

from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import Optional, List, Dict, Any, Literal


class ProductListResponse(BaseModel):
    """Product list response (catalog nodes as returned by Shopify)."""
    ok: bool = True
    products: List[Dict[str, Any]] = Field(default_factory=list)


class ProductStatusRequest(BaseModel):
    """Set status on several products."""
    model_config = ConfigDict(populate_by_name=True)

    product_ids: List[str] = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("productIds", "ids", "product_ids"),
        description="Product ids or GIDs"
    )
    status: Literal["DRAFT", "ACTIVE", "ARCHIVED"]


class ProductStatusError(BaseModel):
    id: str
    error: str


class ProductStatusResponse(BaseModel):
    ok: bool
    message: str
    updated: List[Optional[Dict[str, Any]]] = Field(default_factory=list)
    errors: List[ProductStatusError] = Field(default_factory=list)

"""
Price adjustment request schemas.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Literal, Any

from price_scheduler.core.price_calculator import validate_adjustment


class PriceAdjustmentRequest(BaseModel):
    """Bulk price adjustment over selected products (preview or apply now)."""
    model_config = ConfigDict(populate_by_name=True)

    product_ids: List[str] = Field(..., alias="productIds", min_length=1, description="Selected product ids or GIDs")
    adjust_type: Literal["increase", "decrease"] = Field(..., alias="adjustType")
    amount_type: Literal["percentage", "fixed"] = Field(..., alias="amountType")
    percentage: Optional[float] = Field(None, description="0..100, required for percentage")
    fixed_amount: Optional[float] = Field(None, alias="fixedAmount", description=">= 0, required for fixed")
    rounding: Literal["none", "nearest_whole", "down_whole", "up_99"] = "none"

    @model_validator(mode="after")
    def check_amount(self) -> "PriceAdjustmentRequest":
        problem = validate_adjustment(
            self.adjust_type, self.amount_type, self.percentage, self.fixed_amount, self.rounding
        )
        if problem:
            raise ValueError(problem)
        return self


class VariantPricePreview(BaseModel):
    """Old and new price of one variant."""
    variant_id: str
    variant_title: Optional[str] = None
    image: Optional[dict] = None
    old_price: float
    new_price: float


class ProductPricePreview(BaseModel):
    """Price preview of one product."""
    product_id: str
    title: str
    image: Optional[dict] = None
    variants: List[VariantPricePreview] = Field(default_factory=list)


class PricePreviewResponse(BaseModel):
    ok: bool = True
    preview: List[ProductPricePreview] = Field(default_factory=list)


class ProductAdjustResult(BaseModel):
    product_id: str
    ok: bool = True
    updated: int = 0
    note: Optional[str] = None


class ProductAdjustError(BaseModel):
    product_id: str
    message: str
    user_errors: List[Any] = Field(default_factory=list)


class PriceAdjustResponse(BaseModel):
    """Apply-now result: per-product results plus the products that failed."""
    ok: bool
    message: str
    results: List[ProductAdjustResult] = Field(default_factory=list)
    errors: List[ProductAdjustError] = Field(default_factory=list)

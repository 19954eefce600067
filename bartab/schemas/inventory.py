from pydantic import BaseModel, Field
from typing import Any, List, Optional


class ProductRequest(BaseModel):
    """
    Schema for a new catalog product. Numeric fields are accepted as given and sanitized
    by the validation layer, which reports clamping as warnings.
    """
    name: str = Field(..., description="Display name of the product (e.g., Cerveza Aguila).")
    price: Any = Field(..., description="Unit price in whole currency units.")
    stock: Any = Field(0, description="Units currently on hand.")
    low_stock: Any = Field(0, description="Stock level at or below which the product counts as low.")
    category_id: Optional[str] = None
    happy_hour_discount: Any = Field(0, description="Happy hour discount in percent.")
    happy_hour_start: Optional[int] = Field(None, ge=0, le=23)
    happy_hour_end: Optional[int] = Field(None, ge=0, le=23)
    happy_hour_active: bool = False
    image: Optional[str] = None


class ProductPatchRequest(BaseModel):
    """Partial product update; only fields present in the body are applied."""
    name: Optional[str] = None
    price: Any = None
    stock: Any = None
    low_stock: Any = None
    category_id: Optional[str] = None
    happy_hour_discount: Any = None
    happy_hour_start: Optional[int] = Field(None, ge=0, le=23)
    happy_hour_end: Optional[int] = Field(None, ge=0, le=23)
    happy_hour_active: Optional[bool] = None
    image: Optional[str] = None


class RestockRequest(BaseModel):
    quantity: Any = Field(..., description="Units to add to stock.")


class BulkUpdateRequest(BaseModel):
    product_ids: List[str]
    updates: ProductPatchRequest


class HappyHourRequest(BaseModel):
    discount: int = Field(..., ge=0, le=100, description="Discount in percent for every product of the category.")


class CategoryRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""


class CategoryPatchRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class StockSummaryResponse(BaseModel):
    """Stock on hand versus units held by open orders."""
    product_id: str
    stock: int
    committed: int
    low_stock: int
    is_low: bool

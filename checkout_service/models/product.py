"""Product models for checkout service"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum


class ProductCategory(str, Enum):
    JEWELLERY = "jewellery"
    APPAREL = "apparel"
    ACCESSORIES = "accessories"
    COMBO = "combo"


class Product(BaseModel):
    """Product in the catalog"""
    id: str
    title: str
    description: str = ""
    price: float = Field(gt=0)
    # None means the product was listed without a tax slab
    tax_slab: Optional[float] = Field(default=None, ge=0)
    category: ProductCategory
    seller_id: Optional[str] = None
    stock: int = Field(ge=0, default=0)

    model_config = ConfigDict(from_attributes=True)


class ProductSnapshot(BaseModel):
    """Authoritative product view read fresh for a single checkout"""
    id: str
    title: str
    unit_price: float
    tax_rate_percent: Optional[float] = None
    seller_id: Optional[str] = None
    available_stock: int = Field(ge=0)

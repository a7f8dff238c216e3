"""Cart models for checkout service"""

from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime


class CartItem(BaseModel):
    """Item in a user's cart"""
    product_id: str
    variant: dict[str, Any] = Field(default_factory=dict)
    quantity: int = Field(gt=0)


class Cart(BaseModel):
    """Shopping cart owned by a user"""
    user_id: str
    items: list[CartItem] = []
    updated_at: datetime


class AddToCartRequest(BaseModel):
    """Request to add item to cart"""
    product_id: str
    variant: dict[str, Any] = Field(default_factory=dict)
    quantity: int = Field(default=1, gt=0)


class CartResponse(BaseModel):
    """Cart API response"""
    cart: Cart
    message: Optional[str] = None

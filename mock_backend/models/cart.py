"""Cart models for the mock backend"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ApiModel


class CartItem(ApiModel):
    """Item in a cart"""
    product_id: str
    name: str
    quantity: int = Field(gt=0)
    price: float
    discounted_price: Optional[float] = None
    stock: int = 0
    line_total: float = 0.0


class Cart(ApiModel):
    """Shopping cart, guest-owned while user_id is None"""
    id: str
    user_id: Optional[str] = None
    items: list[CartItem] = []
    total_quantity: int = 0
    subtotal: float = 0.0
    discount_amount: float = 0.0
    total: float = 0.0
    applied_coupon_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AddItemRequest(ApiModel):
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateItemRequest(ApiModel):
    """Quantity of zero or less removes the line"""
    quantity: int


class CouponCodeRequest(ApiModel):
    code: Optional[str] = None


class MergeRequest(ApiModel):
    guest_cart_id: str
    strategy: str = "sum"

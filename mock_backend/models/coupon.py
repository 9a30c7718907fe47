"""Coupon models for the mock backend"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import ApiModel


class DiscountType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class Coupon(ApiModel):
    """Stored coupon; at most one of the targeting lists is non-empty"""
    id: str
    code: str
    discount_type: DiscountType
    discount: float = Field(gt=0)
    expiry_date: Optional[str] = None
    max_uses: Optional[int] = None
    used_count: int = 0
    active: bool = True
    product_ids: list[str] = []
    category_ids: list[str] = []
    customer_ids: list[str] = []
    created_at: datetime
    updated_at: datetime

    @property
    def expired(self) -> bool:
        if not self.expiry_date:
            return False
        return self.expiry_date < datetime.now(timezone.utc).date().isoformat()


class CouponWrite(ApiModel):
    """Create or patch payload from the admin console"""
    code: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount: Optional[float] = Field(default=None, gt=0)
    expiry_date: Optional[str] = None
    max_uses: Optional[int] = Field(default=None, ge=1)
    active: Optional[bool] = None
    product_ids: Optional[list[str]] = None
    category_ids: Optional[list[str]] = None
    customer_ids: Optional[list[str]] = None
    global_: Optional[bool] = Field(default=None, alias="global")

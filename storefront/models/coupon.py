"""Coupon models"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .base import Money, WireModel


class CouponDiscountType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


# ==================== Targeting ====================
# A coupon targets exactly one of these. Modelling it as a tagged union makes
# "several targeting arrays at once" unrepresentable.

class GlobalTarget(BaseModel):
    kind: Literal["global"] = "global"


class ProductTarget(BaseModel):
    kind: Literal["product"] = "product"
    product_id: str


class CategoryTarget(BaseModel):
    kind: Literal["category"] = "category"
    category_id: str


class CustomerTarget(BaseModel):
    kind: Literal["customer"] = "customer"
    customer_id: str


CouponTarget = Annotated[
    Union[GlobalTarget, ProductTarget, CategoryTarget, CustomerTarget],
    Field(discriminator="kind"),
]


def target_to_wire(target: CouponTarget) -> dict:
    """The single targeting field a coupon payload carries"""
    if isinstance(target, ProductTarget):
        return {"productIds": [target.product_id]}
    if isinstance(target, CategoryTarget):
        return {"categoryIds": [target.category_id]}
    if isinstance(target, CustomerTarget):
        return {"customerIds": [target.customer_id]}
    return {"global": True}


# ==================== Admin ====================

class CouponDraft(BaseModel):
    """Coupon as entered in the admin console"""
    code: str = Field(min_length=1)
    discount_type: CouponDiscountType
    discount: Decimal = Field(gt=0)
    expiry_date: Optional[str] = None
    max_uses: Optional[int] = Field(default=None, ge=1)
    active: bool = True
    target: CouponTarget = Field(default_factory=GlobalTarget)

    def to_wire(self) -> dict:
        payload = {
            "code": self.code.strip().upper(),
            "discountType": self.discount_type.value,
            "discount": float(self.discount),
            "active": self.active,
        }
        if self.expiry_date is not None:
            payload["expiryDate"] = self.expiry_date
        if self.max_uses is not None:
            payload["maxUses"] = self.max_uses
        payload.update(target_to_wire(self.target))
        return payload


class AdminCoupon(WireModel):
    """Coupon as stored by the backend"""
    id: str
    code: str
    discount_type: CouponDiscountType
    discount: Money
    expiry_date: Optional[str] = None
    max_uses: Optional[int] = None
    used_count: int = 0
    active: bool = True
    product_ids: list[str] = []
    category_ids: list[str] = []
    customer_ids: list[str] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def target(self) -> Optional[CouponTarget]:
        """
        The coupon's single target.

        None when the stored record carries more than one targeting array,
        which the backend should never return.
        """
        populated = [
            (name, ids) for name, ids in (
                ("product", self.product_ids),
                ("category", self.category_ids),
                ("customer", self.customer_ids),
            ) if ids
        ]
        if not populated:
            return GlobalTarget()
        if len(populated) > 1 or len(populated[0][1]) > 1:
            return None
        name, ids = populated[0]
        if name == "product":
            return ProductTarget(product_id=ids[0])
        if name == "category":
            return CategoryTarget(category_id=ids[0])
        return CustomerTarget(customer_id=ids[0])


class CouponSummary(WireModel):
    total: int = 0
    active: int = 0
    expired: int = 0


# ==================== Storefront ====================

class CouponPreviewContext(BaseModel):
    """What the validate endpoint needs to judge eligibility"""
    customer_id: Optional[str] = None
    product_ids: list[str] = []
    category_ids: list[str] = []
    subtotal: Optional[Decimal] = None

    def to_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if self.customer_id:
            params.append(("customerId", self.customer_id))
        if self.subtotal is not None:
            params.append(("subtotal", str(self.subtotal)))
        params.extend(("productIds", pid) for pid in self.product_ids)
        params.extend(("categoryIds", cid) for cid in self.category_ids)
        return params


class CouponValidation(WireModel):
    """Read-only estimate; never a substitute for applying the coupon"""
    valid: bool = False
    code: Optional[str] = None
    discount_type: Optional[CouponDiscountType] = None
    discount: Optional[Money] = None
    discount_amount: Optional[Money] = None
    message: Optional[str] = None


def normalize_coupon_code(code: str) -> str:
    return (code or "").strip().upper()

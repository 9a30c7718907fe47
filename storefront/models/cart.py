"""Cart models"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from dataclasses import dataclass

from pydantic import Field, field_validator, model_validator

from .base import Money, WireModel


class CartItem(WireModel):
    """Line in a cart, with unit prices snapshotted for display"""
    product_id: str
    name: Optional[str] = None
    quantity: int = Field(ge=1)
    price: Money = Decimal("0")
    discounted_price: Optional[Money] = None
    stock: Optional[int] = None
    line_total: Optional[Money] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _stringify_product_id(cls, value):
        return str(value) if value is not None else value

    @property
    def unit_price(self) -> Decimal:
        """Effective unit price"""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.price

    @property
    def provisional_line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartView(WireModel):
    """Authoritative cart snapshot as returned by the backend"""
    id: str
    user_id: Optional[str] = None
    items: list[CartItem] = []
    total_quantity: int = 0
    subtotal: Money = Decimal("0")
    discount_amount: Money = Decimal("0")
    total: Optional[Money] = None
    applied_coupon_code: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def _drop_empty_lines(cls, value):
        # A line at quantity 0 is a deleted line
        if isinstance(value, list):
            return [
                item for item in value
                if not (isinstance(item, dict) and (item.get("quantity") or 0) <= 0)
            ]
        return value

    @field_validator("discount_amount", mode="before")
    @classmethod
    def _missing_discount_is_zero(cls, value):
        return Decimal("0") if value is None else value

    @model_validator(mode="after")
    def _fill_total(self):
        if self.total is None:
            self.total = max(self.subtotal - self.discount_amount, Decimal("0"))
        return self

    @classmethod
    def empty(cls, cart_id: str, user_id: Optional[str] = None) -> "CartView":
        return cls(id=cart_id, user_id=user_id)

    def find_item(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == str(product_id)), None)

    def quantity_of(self, product_id: str) -> int:
        item = self.find_item(product_id)
        return item.quantity if item else 0

    def quantities(self) -> dict[str, int]:
        """Product id -> quantity"""
        return {item.product_id: item.quantity for item in self.items}

    def recalculated(self, items: Optional[list[CartItem]] = None) -> "CartView":
        """
        Copy of this view with totals recomputed from the item list.

        Used only for optimistic display; the discount is carried over as-is
        because only the backend can re-evaluate the coupon.
        """
        items = list(self.items if items is None else items)
        subtotal = sum((item.provisional_line_total for item in items), Decimal("0"))
        return self.model_copy(update={
            "items": items,
            "total_quantity": sum(item.quantity for item in items),
            "subtotal": subtotal,
            "total": max(subtotal - self.discount_amount, Decimal("0")),
        })

    def with_quantity(self, product_id: str, quantity: int) -> "CartView":
        """Optimistic edit: set a line's quantity, dropping it when <= 0"""
        if quantity <= 0:
            return self.without_item(product_id)
        items = [
            item.model_copy(update={
                "quantity": quantity,
                "line_total": item.unit_price * quantity,
            })
            if item.product_id == str(product_id) else item
            for item in self.items
        ]
        return self.recalculated(items)

    def without_item(self, product_id: str) -> "CartView":
        """Optimistic edit: drop a line"""
        return self.recalculated([i for i in self.items if i.product_id != str(product_id)])


class CartOwner(str, Enum):
    GUEST = "guest"
    USER = "user"


@dataclass(frozen=True)
class CartRef:
    """Which cart an operation targets and which endpoint family serves it"""
    cart_id: Optional[str]
    owner: CartOwner

    @classmethod
    def guest(cls, cart_id: str) -> "CartRef":
        return cls(cart_id=cart_id, owner=CartOwner.GUEST)

    @classmethod
    def user(cls, cart_id: Optional[str] = None) -> "CartRef":
        return cls(cart_id=cart_id, owner=CartOwner.USER)

    @property
    def is_user(self) -> bool:
        return self.owner == CartOwner.USER

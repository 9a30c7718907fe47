"""Locally persisted cart used while the backend is unreachable"""

import logging
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from ..core.context import ClientContext
from ..models.cart import CartView

logger = logging.getLogger(__name__)

LOCAL_CART_ID = "local-cart"


class LocalCartStore:
    """
    Opt-in offline cart kept in client storage.

    Only consulted when the backend cannot be reached. Totals are provisional
    and no discount is ever computed locally; the first successful backend
    response replaces whatever is shown.
    """

    def __init__(self, context: ClientContext):
        self.context = context

    @property
    def key(self) -> str:
        return self.context.settings.local_cart_storage_key

    def load(self) -> Optional[CartView]:
        raw = self.context.storage.get(self.key)
        if not raw:
            return None
        try:
            return CartView.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable local cart")
            return None

    def save(self, view: CartView) -> CartView:
        self.context.storage.set(self.key, view.model_dump_json(by_alias=True, exclude_none=True))
        return view

    def clear(self) -> None:
        self.context.storage.remove(self.key)

    def ensure(self, seed: Optional[CartView] = None) -> CartView:
        """Stored local cart, else a copy of `seed`, else an empty one"""
        existing = self.load()
        if existing is not None:
            return existing
        if seed is not None:
            return seed.model_copy(update={"id": LOCAL_CART_ID})
        return CartView.empty(LOCAL_CART_ID)

    # ==================== Edits ====================

    def set_quantity(
        self,
        product_id: str,
        quantity: int,
        seed: Optional[CartView] = None,
    ) -> Optional[CartView]:
        """
        Set a line's quantity, clamped to the last known stock.

        Returns None for a product that appears in neither the local cart
        nor `seed`, since its price is unknown offline.
        """
        product_id = str(product_id)
        cart = self.ensure(seed)
        line = cart.find_item(product_id) or (seed.find_item(product_id) if seed else None)
        if line is None and quantity > 0:
            return None
        if line is not None and line.stock is not None:
            quantity = min(quantity, line.stock)

        if quantity <= 0:
            return self.save(cart.without_item(product_id))
        if cart.find_item(product_id):
            return self.save(cart.with_quantity(product_id, quantity))
        item = line.model_copy(update={"quantity": quantity, "line_total": line.unit_price * quantity})
        return self.save(cart.recalculated([*cart.items, item]))

    def add(self, product_id: str, quantity: int, seed: Optional[CartView] = None) -> Optional[CartView]:
        current = self.ensure(seed).quantity_of(product_id)
        return self.set_quantity(product_id, current + quantity, seed)

    def remove(self, product_id: str, seed: Optional[CartView] = None) -> CartView:
        return self.save(self.ensure(seed).without_item(product_id))

    def clear_items(self, seed: Optional[CartView] = None) -> CartView:
        cart = self.ensure(seed).model_copy(update={
            "applied_coupon_code": None,
            "discount_amount": Decimal("0"),
        })
        return self.save(cart.recalculated([]))

    def set_coupon(self, code: Optional[str], seed: Optional[CartView] = None) -> CartView:
        """Record the code only; the discount stays zero until the backend prices it"""
        cart = self.ensure(seed).model_copy(update={
            "applied_coupon_code": code,
            "discount_amount": Decimal("0"),
        })
        return self.save(cart.recalculated())

"""Order placement and order lookups"""

import logging
from typing import Optional

from ..models.order import CheckoutDetails, OrderView
from .cart_engine import CartSyncEngine
from .errors import BackendError, Outcome, StockConflictError, StorefrontError

logger = logging.getLogger(__name__)

OUT_OF_STOCK = "OUT_OF_STOCK"


def is_stock_conflict(error: StorefrontError) -> bool:
    if not isinstance(error, BackendError) or error.status != 409:
        return False
    return error.code == OUT_OF_STOCK or "out of stock" in error.message.lower()


class CheckoutService:
    """Turns the current cart into an order"""

    def __init__(self, engine: CartSyncEngine):
        self.engine = engine
        self.client = engine.client
        self.context = engine.context

    async def place_order(self, details: CheckoutDetails) -> Outcome[OrderView]:
        """
        Place an order for the current cart.

        On success the guest cart identity is destroyed and the local cart
        emptied. When the backend reports missing stock, each affected line
        is cut down to what is available and the caller is asked to retry.
        """
        guest_cart_id: Optional[str] = None
        if not self.context.authenticated:
            guest_cart_id = self.engine.identity.stored_guest_cart_id()
            if not guest_cart_id:
                return Outcome.failure(BackendError("No cart found", code="NO_CART"))

        try:
            data = await self.client.create_order(details.to_wire(), guest_cart_id=guest_cart_id)
        except StorefrontError as e:
            if is_stock_conflict(e):
                return await self._adjust_for_stock(e)
            logger.warning(f"Order placement failed: {e}")
            return Outcome.failure(e)

        if not isinstance(data, dict) or not data.get("id"):
            return Outcome.failure(BackendError("Order creation failed", code="NO_ORDER_ID"))

        order = OrderView.model_validate(data)
        logger.info(f"Order {order.display_number} placed")

        # Guests get a new cart lazily on their next interaction
        self.engine.reset_client_cart()
        if self.context.authenticated:
            await self.engine.refresh()
        return Outcome.success(order)

    async def _adjust_for_stock(self, error: BackendError) -> Outcome[OrderView]:
        cart = self.engine.cart
        adjustments: dict[str, int] = {}
        for product_id, available in error.fields.items():
            try:
                available_qty = int(float(available))
            except (TypeError, ValueError):
                available_qty = 0
            requested = cart.quantity_of(product_id) if cart else available_qty
            target = max(0, min(available_qty, requested))
            adjustments[product_id] = target
            await self.engine.update_item(product_id, target)

        await self.engine.refresh()
        logger.info(f"Adjusted cart for stock: {adjustments}")
        return Outcome.failure(StockConflictError(error, adjustments))

    # ==================== Lookups ====================

    async def get_order(self, order_id: str) -> Outcome[OrderView]:
        return await self._fetch_order(self.client.get_order(order_id))

    async def get_order_by_number(self, number: str) -> Outcome[OrderView]:
        return await self._fetch_order(self.client.get_order_by_number(number))

    async def _fetch_order(self, call) -> Outcome[OrderView]:
        try:
            data = await call
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success(OrderView.model_validate(data))

    async def list_my_orders(self) -> Outcome[list[OrderView]]:
        if not self.context.authenticated:
            return Outcome.failure(BackendError("Sign in to see your orders", status=401, code="UNAUTHORIZED"))
        try:
            data = await self.client.list_my_orders()
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success([OrderView.model_validate(o) for o in data])

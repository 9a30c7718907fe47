"""Item-level cart mutations with optimistic display"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..core.config import OptimisticFailurePolicy
from ..models.cart import CartRef, CartView
from .errors import BackendError, BackendUnavailableError, Outcome, StorefrontError

if TYPE_CHECKING:
    from .cart_engine import CartSyncEngine

logger = logging.getLogger(__name__)


def _no_cart() -> BackendUnavailableError:
    return BackendUnavailableError("No cart available; the backend could not provision one")


class CartMutationService:
    """
    Applies item mutations against the resolved cart.

    Every successful call ends with a reconciliation round-trip so stock
    clamping and price changes made by the backend replace the local guess.
    With local fallback enabled, a mutation the backend could not receive is
    applied to the locally persisted cart instead.
    """

    def __init__(self, engine: "CartSyncEngine"):
        self.engine = engine

    @property
    def client(self):
        return self.engine.client

    @property
    def identity(self):
        return self.engine.identity

    async def _commit(self, view: CartView, ref: CartRef) -> Outcome[CartView]:
        self.engine.accept(view, ref)
        await self.engine.reconcile(ref)
        return Outcome.success(self.engine.cart)

    def _optimistic(self, edit: Callable[[CartView], CartView]) -> Optional[CartView]:
        """Apply a local edit and return the view it replaced"""
        snapshot = self.engine.cart
        if snapshot is not None:
            self.engine.cart = edit(snapshot)
        return snapshot

    def _rejected(self, action: str, snapshot: Optional[CartView], error: StorefrontError) -> Outcome[CartView]:
        logger.warning(f"Cart {action} failed: {error}")
        if self.engine.optimistic_failure_policy == OptimisticFailurePolicy.ROLLBACK:
            self.engine.cart = snapshot
        return Outcome.failure(error, value=self.engine.cart)

    async def add_item(self, product_id: str, quantity: int) -> Outcome[CartView]:
        """
        Add a product to the cart.

        A guest cart the backend no longer knows (404) or refuses (409) is
        replaced by a freshly provisioned one and the add is retried once.
        """
        seed = self.engine.cart
        offline = lambda local: local.add(product_id, quantity, seed)
        ref = await self.identity.current_ref()
        if ref is None:
            error = _no_cart()
            return self.engine.offline(error, offline) or Outcome.failure(error)

        try:
            view = await self.client.add_item(ref, product_id, quantity)
        except BackendError as e:
            if ref.is_user or not (e.is_not_found or e.is_conflict):
                logger.warning(f"Add to cart failed: {e}")
                return Outcome.failure(e, value=self.engine.cart)

            logger.info(f"Guest cart {ref.cart_id} rejected the add ({e.status}); re-provisioning once")
            new_id = await self.identity.provision_guest_cart()
            if not new_id:
                return Outcome.failure(e, value=self.engine.cart)
            ref = CartRef.guest(new_id)
            try:
                view = await self.client.add_item(ref, product_id, quantity)
            except StorefrontError as retry_error:
                logger.warning(f"Add to cart failed after re-provisioning: {retry_error}")
                return (
                    self.engine.offline(retry_error, offline)
                    or Outcome.failure(retry_error, value=self.engine.cart)
                )
        except StorefrontError as e:
            logger.warning(f"Add to cart failed: {e}")
            return self.engine.offline(e, offline) or Outcome.failure(e, value=self.engine.cart)

        return await self._commit(view, ref)

    async def update_item(self, product_id: str, quantity: int) -> Outcome[CartView]:
        """
        Set a line's quantity; zero or less removes the line.

        The local view changes before the request completes. If the backend
        says the line does not exist and the target is positive, the product
        is added with that quantity instead.
        """
        seed = self.engine.cart
        offline = lambda local: local.set_quantity(product_id, quantity, seed)
        ref = await self.identity.current_ref()
        if ref is None:
            error = _no_cart()
            return self.engine.offline(error, offline) or Outcome.failure(error)

        snapshot = self._optimistic(lambda cart: cart.with_quantity(product_id, quantity))

        try:
            view = await self.client.update_item(ref, product_id, quantity)
        except BackendError as e:
            if not (e.is_not_found and quantity > 0):
                return self._rejected("update", snapshot, e)
            logger.info(f"Line {product_id} missing server-side; adding {quantity} instead")
            added = await self.add_item(product_id, quantity)
            if not added:
                return self._rejected("update", snapshot, added.error)
            return added
        except StorefrontError as e:
            return self.engine.offline(e, offline) or self._rejected("update", snapshot, e)

        return await self._commit(view, ref)

    async def remove_item(self, product_id: str) -> Outcome[CartView]:
        seed = self.engine.cart
        offline = lambda local: local.remove(product_id, seed)
        ref = await self.identity.current_ref()
        if ref is None:
            error = _no_cart()
            return self.engine.offline(error, offline) or Outcome.failure(error)

        snapshot = self._optimistic(lambda cart: cart.without_item(product_id))

        try:
            view = await self.client.remove_item(ref, product_id)
        except StorefrontError as e:
            return self.engine.offline(e, offline) or self._rejected("remove", snapshot, e)

        return await self._commit(view, ref)

    async def clear(self) -> Outcome[CartView]:
        seed = self.engine.cart
        offline = lambda local: local.clear_items(seed)
        ref = await self.identity.current_ref()
        if ref is None:
            error = _no_cart()
            return self.engine.offline(error, offline) or Outcome.failure(error)

        try:
            view = await self.client.clear_cart(ref)
        except StorefrontError as e:
            logger.warning(f"Clearing cart failed: {e}")
            return self.engine.offline(e, offline) or Outcome.failure(e, value=self.engine.cart)

        return await self._commit(view, ref)

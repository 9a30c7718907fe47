"""Guest cart merge on the signed-out -> signed-in transition"""

import logging
from typing import TYPE_CHECKING, Optional

from ..core.config import MergeStrategy
from ..core.context import CartPhase
from ..models.cart import CartRef, CartView
from .cart_identity import normalize_cart_id
from .errors import Outcome, StorefrontError

if TYPE_CHECKING:
    from .cart_engine import CartSyncEngine

logger = logging.getLogger(__name__)


class LoginMergeCoordinator:
    """Folds a guest cart into the user cart, once per login"""

    def __init__(self, engine: "CartSyncEngine"):
        self.engine = engine

    async def run(self, strategy: Optional[MergeStrategy] = None) -> Outcome[CartView]:
        """
        Merge the persisted guest cart, then refresh the user cart.

        A successful merge discards the guest id even if the response body is
        empty, so a second login can never count the same lines twice. The
        refresh happens whatever the merge outcome.
        """
        engine = self.engine
        strategy = strategy or engine.context.settings.merge_strategy
        merged = False
        failure: Optional[StorefrontError] = None

        raw = engine.context.read_guest_cart_id()
        if raw:
            engine.phase = CartPhase.MERGING
            guest_id = normalize_cart_id(raw)
            if guest_id is None:
                logger.info(f"Dropping unusable guest cart id {raw!r} instead of merging")
                engine.identity.discard_guest_cart_id()
            else:
                try:
                    view = await engine.client.merge_guest_cart(guest_id, strategy.value)
                except StorefrontError as e:
                    logger.warning(f"Merging guest cart {guest_id} failed: {e}")
                    failure = e
                else:
                    engine.identity.discard_guest_cart_id()
                    merged = True
                    if view is not None:
                        engine.accept(view, CartRef.user(view.id))
                    logger.info(f"Merged guest cart {guest_id} ({strategy.value})")

        engine.phase = CartPhase.USER
        await engine.refresh()

        if failure is not None:
            return Outcome.failure(failure, value=engine.cart)
        return Outcome.success(engine.cart, merged=merged)

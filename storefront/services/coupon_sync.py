"""Coupon apply/remove against the cart, and read-only previews"""

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from ..models.cart import CartView
from ..models.coupon import CouponPreviewContext, CouponValidation
from .errors import BackendError, BackendUnavailableError, Outcome, StorefrontError

if TYPE_CHECKING:
    from .cart_engine import CartSyncEngine

logger = logging.getLogger(__name__)


class CouponSyncService:
    """
    Keeps discount and totals authoritative.

    Applying goes through summary sync (`PATCH .../summary {code}`), which
    applies the coupon and returns fresh totals in one trip. Removing prefers
    `DELETE .../coupon` and falls back to summary sync with a null code.
    Discounts are never computed here.
    """

    def __init__(self, engine: "CartSyncEngine"):
        self.engine = engine

    async def apply(self, code: str) -> Outcome[CartView]:
        """Apply an already-normalized code"""
        seed = self.engine.cart
        offline = lambda local: local.set_coupon(code, seed)
        ref = await self.engine.identity.current_ref()
        if ref is None:
            error = BackendUnavailableError("No cart available")
            return self.engine.offline(error, offline) or Outcome.failure(error)

        try:
            view = await self.engine.client.sync_summary(ref, code)
        except StorefrontError as e:
            logger.info(f"Coupon {code} rejected: {e}")
            return self.engine.offline(e, offline) or Outcome.failure(e, value=self.engine.cart)

        self.engine.accept(view, ref)
        view = await self.engine.reconcile(ref) or view

        if (view.applied_coupon_code or "").upper() != code:
            return Outcome.failure(
                BackendError(f"Coupon {code} was not applied", code="COUPON_NOT_APPLIED"),
                value=view,
            )
        return Outcome.success(view)

    async def remove(self) -> Outcome[CartView]:
        seed = self.engine.cart
        offline = lambda local: local.set_coupon(None, seed)
        ref = await self.engine.identity.current_ref()
        if ref is None:
            error = BackendUnavailableError("No cart available")
            return self.engine.offline(error, offline) or Outcome.failure(error)

        client = self.engine.client
        try:
            view = await client.remove_coupon(ref)
        except BackendUnavailableError as e:
            return self.engine.offline(e, offline) or Outcome.failure(e, value=self.engine.cart)
        except StorefrontError as e:
            logger.info(f"Coupon DELETE failed ({e}); clearing through summary sync")
            try:
                view = await client.sync_summary(ref, None)
            except StorefrontError as fallback_error:
                logger.warning(f"Removing coupon failed: {fallback_error}")
                return (
                    self.engine.offline(fallback_error, offline)
                    or Outcome.failure(fallback_error, value=self.engine.cart)
                )

        self.engine.accept(view, ref)
        view = await self.engine.reconcile(ref) or view

        if view.applied_coupon_code or view.discount_amount != Decimal("0"):
            return Outcome.failure(
                BackendError("Coupon is still applied", code="COUPON_NOT_REMOVED"),
                value=view,
            )
        return Outcome.success(view)

    async def preview(self, code: str, context: CouponPreviewContext) -> Outcome[CouponValidation]:
        """
        Estimate a coupon's effect without touching the cart.

        Eligibility can change before the coupon is applied, so a valid
        preview is never treated as applied.
        """
        try:
            data = await self.engine.client.validate_coupon(code, context.to_params())
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success(CouponValidation.model_validate(data))

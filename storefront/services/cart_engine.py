"""
Cart Sync Engine

Owns the client's view of the current cart:
1. Resolves guest vs. user cart identity
2. Applies item mutations with optimistic display
3. Applies and removes coupons through summary sync
4. Merges the guest cart into the user cart on login
"""

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from typing import Callable, Optional

from ..core.config import MergeStrategy, OptimisticFailurePolicy
from ..core.context import CartPhase, ClientContext
from ..models.cart import CartRef, CartView
from ..models.coupon import CouponPreviewContext, CouponValidation, normalize_coupon_code
from .backend_client import BackendClient
from .cart_identity import CartIdentityResolver, normalize_cart_id
from .cart_mutations import CartMutationService
from .coupon_sync import CouponSyncService
from .errors import BackendError, BackendUnavailableError, Outcome, StorefrontError
from .local_cart import LocalCartStore
from .login_merge import LoginMergeCoordinator

logger = logging.getLogger(__name__)


class CartSyncEngine:
    """
    Client-side cart state and its reconciliation with the backend.

    Every network response fully replaces the local view, so the last
    response to arrive wins. Set `serialize_mutations` to queue mutations
    one at a time instead.
    """

    normalize_cart_id = staticmethod(normalize_cart_id)

    def __init__(
        self,
        client: BackendClient,
        context: Optional[ClientContext] = None,
        optimistic_failure_policy: Optional[OptimisticFailurePolicy] = None,
        serialize_mutations: Optional[bool] = None,
        local_fallback: Optional[bool] = None,
    ):
        self.client = client
        self.context = context or client.context
        settings = self.context.settings
        self.optimistic_failure_policy = (
            optimistic_failure_policy or settings.optimistic_failure_policy
        )
        self.serialize_mutations = (
            settings.serialize_mutations if serialize_mutations is None else serialize_mutations
        )

        self.identity = CartIdentityResolver(client, self.context)
        self.mutations = CartMutationService(self)
        self.coupons = CouponSyncService(self)
        self.merger = LoginMergeCoordinator(self)
        if local_fallback is None:
            local_fallback = settings.local_fallback
        self.local_cart = LocalCartStore(self.context) if local_fallback else None

        self.cart: Optional[CartView] = None
        self.phase = CartPhase.UNRESOLVED
        self._busy_depth = 0
        self._mutation_lock = asyncio.Lock()
        self._was_authenticated = False
        self._signed_in_as: Optional[str] = None

    # ==================== State ====================

    @property
    def loading(self) -> bool:
        """True while a user-initiated operation or refresh is in flight"""
        return self._busy_depth > 0

    @property
    def cart_count(self) -> int:
        return self.cart.total_quantity if self.cart else 0

    def accept(self, view: CartView, ref: CartRef) -> None:
        """Take an authoritative view as the local state"""
        self.cart = view
        if self.local_cart is not None:
            self.local_cart.clear()
        if ref.is_user:
            self.identity.last_user_cart = view
        if self.phase != CartPhase.MERGING:
            self.phase = CartPhase.USER if ref.is_user else CartPhase.GUEST

    def reset_client_cart(self) -> None:
        """Forget the local cart after an order or logout"""
        self.identity.discard_guest_cart_id()
        self.identity.last_user_cart = None
        if self.local_cart is not None:
            self.local_cart.clear()
        cart_id = self.cart.id if self.cart else None
        self.cart = CartView.empty(cart_id, self.context.user_id) if cart_id else None
        if not self.context.authenticated:
            self.phase = CartPhase.UNRESOLVED

    @asynccontextmanager
    async def _busy(self):
        self._busy_depth += 1
        try:
            yield
        finally:
            self._busy_depth -= 1

    def _mutation_guard(self):
        return self._mutation_lock if self.serialize_mutations else nullcontext()

    # ==================== Lifecycle ====================

    async def start(self) -> Outcome[CartView]:
        """Resolve the cart at application start"""
        if self.context.authenticated:
            return await self.on_auth_changed(True)
        return await self.refresh()

    async def on_auth_changed(self, authenticated: bool) -> Outcome[CartView]:
        """
        React to an authentication change.

        Only the signed-out -> signed-in edge triggers a merge; repeated
        calls with the same state do nothing beyond reporting the cart.
        Signing in as a different account while signed in counts as a
        sign-out followed by a sign-in.
        """
        was_authenticated = self._was_authenticated
        previous_user = self._signed_in_as
        self._was_authenticated = authenticated
        self._signed_in_as = self.context.user_id if authenticated else None

        if was_authenticated and authenticated and self._signed_in_as != previous_user:
            logger.info(f"Account changed from {previous_user} to {self._signed_in_as}")
            self._drop_user_cart()
            return await self.merger.run()

        if authenticated and not was_authenticated:
            return await self.merger.run()

        if not authenticated and was_authenticated:
            logger.info("Session ended; dropping user cart")
            self._drop_user_cart()

        return Outcome.success(self.cart)

    def _drop_user_cart(self) -> None:
        self.cart = None
        self.identity.last_user_cart = None
        self.phase = CartPhase.UNRESOLVED

    def offline(
        self,
        error: StorefrontError,
        edit: Callable[[LocalCartStore], Optional[CartView]],
    ) -> Optional[Outcome[CartView]]:
        """
        Apply `edit` to the local cart when the backend is unreachable.

        None when local fallback is off, the error is not a connectivity
        failure, or the edit cannot be made offline.
        """
        if self.local_cart is None or not isinstance(error, BackendUnavailableError):
            return None
        view = edit(self.local_cart)
        if view is None:
            return None
        logger.info(f"Backend unreachable ({error}); using the local cart")
        self.cart = view
        return Outcome.success(view, local=True)

    async def _fetch_authoritative(self, ref: CartRef) -> CartView:
        """Summary sync with an empty body, falling back to a plain GET"""
        try:
            return await self.client.sync_summary(ref)
        except StorefrontError as e:
            logger.debug(f"Summary sync failed ({e}); fetching cart instead")
            return await self.client.get_cart(ref)

    async def reconcile(self, ref: CartRef) -> Optional[CartView]:
        """Overwrite local state with the server's view; best effort"""
        try:
            view = await self._fetch_authoritative(ref)
        except StorefrontError as e:
            logger.warning(f"Could not reconcile cart after mutation: {e}")
            return None
        self.accept(view, ref)
        return view

    async def refresh(self) -> Outcome[CartView]:
        """Reload the authoritative cart, provisioning a guest cart if needed"""
        async with self._busy():
            if self.context.authenticated:
                ref = CartRef.user()
                try:
                    view = await self._fetch_authoritative(ref)
                except StorefrontError as e:
                    logger.warning(f"Refreshing user cart failed: {e}")
                    return Outcome.failure(e, value=self.cart)
                self.accept(view, ref)
                return Outcome.success(view)

            cart_id = await self.identity.ensure_guest_cart_id()
            if not cart_id:
                error = BackendUnavailableError("No cart available")
                fallback = self.offline(error, lambda local: local.load())
                if fallback:
                    return fallback
                self.cart = None
                return Outcome.failure(error)

            ref = CartRef.guest(cart_id)
            try:
                view = await self._fetch_authoritative(ref)
            except BackendError as e:
                if not e.is_not_found:
                    return Outcome.failure(e, value=self.cart)
                logger.info(f"Guest cart {cart_id} is gone; provisioning a new one")
                new_id = await self.identity.provision_guest_cart()
                if not new_id:
                    self.cart = None
                    return Outcome.failure(e)
                ref = CartRef.guest(new_id)
                try:
                    view = await self.client.get_cart(ref)
                except StorefrontError as retry_error:
                    return Outcome.failure(retry_error)
            except StorefrontError as e:
                return self.offline(e, lambda local: local.load()) or Outcome.failure(e, value=self.cart)

            self.accept(view, ref)
            return Outcome.success(view)

    async def resolve_effective_cart_id(self) -> Optional[str]:
        return await self.identity.resolve_effective_cart_id()

    # ==================== Mutations ====================

    async def add_item(self, product_id: str, quantity: int = 1) -> Outcome[CartView]:
        async with self._busy(), self._mutation_guard():
            return await self.mutations.add_item(product_id, quantity)

    async def update_item(self, product_id: str, quantity: int) -> Outcome[CartView]:
        async with self._mutation_guard():
            return await self.mutations.update_item(product_id, quantity)

    async def remove_item(self, product_id: str) -> Outcome[CartView]:
        async with self._mutation_guard():
            return await self.mutations.remove_item(product_id)

    async def clear(self) -> Outcome[CartView]:
        async with self._mutation_guard():
            return await self.mutations.clear()

    # ==================== Coupons ====================

    async def apply_coupon(self, code: str) -> Outcome[CartView]:
        normalized = normalize_coupon_code(code)
        if not normalized:
            return Outcome.failure(
                BackendError("Enter a coupon code", code="VALIDATION_ERROR", fields={"code": "required"}),
                value=self.cart,
            )
        async with self._busy(), self._mutation_guard():
            return await self.coupons.apply(normalized)

    async def remove_coupon(self) -> Outcome[CartView]:
        async with self._mutation_guard():
            return await self.coupons.remove()

    def preview_context(self) -> CouponPreviewContext:
        """Eligibility inputs taken from the signed-in user and current view"""
        cart = self.cart
        return CouponPreviewContext(
            customer_id=self.context.user_id,
            product_ids=[item.product_id for item in cart.items] if cart else [],
            subtotal=cart.subtotal if cart else None,
        )

    async def preview_coupon(
        self,
        code: str,
        context: Optional[CouponPreviewContext] = None,
    ) -> Outcome[CouponValidation]:
        return await self.coupons.preview(
            normalize_coupon_code(code),
            context or self.preview_context(),
        )

    # ==================== Login ====================

    async def merge_on_login(self, strategy: MergeStrategy = MergeStrategy.SUM) -> Outcome[CartView]:
        """Run the guest-cart merge directly (normally driven by on_auth_changed)"""
        return await self.merger.run(strategy)

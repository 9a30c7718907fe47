"""Cart identity: which cart an operation targets"""

import logging
import re
from typing import Optional

from ..core.context import ClientContext
from ..models.cart import CartRef, CartView
from .backend_client import BackendClient
from .errors import StorefrontError

logger = logging.getLogger(__name__)

_UUID = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
CANONICAL_CART_ID = re.compile(rf"^{_UUID}$")
LEGACY_CART_ID = re.compile(rf"^cart-({_UUID})$")
EMBEDDED_CART_ID = re.compile(rf"({_UUID})")


def is_canonical_cart_id(value: Optional[str]) -> bool:
    return bool(value) and CANONICAL_CART_ID.match(value) is not None


def normalize_cart_id(raw: Optional[str]) -> Optional[str]:
    """
    Recover a canonical cart id from whatever storage holds.

    The backend id format changed over time: plain UUIDs pass through,
    legacy `cart-<uuid>` values lose their prefix, and any other string
    yields its first embedded UUID. Anything else is None.
    """
    if not raw:
        return None
    if CANONICAL_CART_ID.match(raw):
        return raw
    match = LEGACY_CART_ID.match(raw) or EMBEDDED_CART_ID.search(raw)
    if match:
        return match.group(1)
    return None


class CartIdentityResolver:
    """
    Decides between the signed-in user's cart and a guest cart, and makes
    sure a valid guest cart id exists when one is needed.
    """

    def __init__(self, client: BackendClient, context: ClientContext):
        self.client = client
        self.context = context
        self.last_user_cart: Optional[CartView] = None

    def stored_guest_cart_id(self) -> Optional[str]:
        """Persisted guest id in canonical form, rewriting legacy forms in place"""
        stored = self.context.read_guest_cart_id()
        normalized = normalize_cart_id(stored)
        if normalized and normalized != stored:
            logger.info(f"Normalized stored guest cart id {stored!r} -> {normalized}")
            self.context.write_guest_cart_id(normalized)
        return normalized

    async def provision_guest_cart(self) -> Optional[str]:
        """Create a fresh guest cart and persist its id"""
        try:
            cart_id = await self.client.create_guest_cart()
        except StorefrontError as e:
            logger.error(f"Guest cart creation failed: {e}")
            return None
        cart_id = normalize_cart_id(cart_id) or cart_id
        self.context.write_guest_cart_id(cart_id)
        logger.info(f"Provisioned guest cart {cart_id}")
        return cart_id

    async def ensure_guest_cart_id(self) -> Optional[str]:
        return self.stored_guest_cart_id() or await self.provision_guest_cart()

    def discard_guest_cart_id(self) -> None:
        if self.context.read_guest_cart_id() is not None:
            logger.info("Discarding guest cart id")
        self.context.clear_guest_cart_id()

    async def resolve_effective_cart_id(self) -> Optional[str]:
        """
        Id of the cart the client should operate on.

        Signed in: the user's cart (the backend creates it on first fetch).
        Otherwise: the persisted guest id, provisioning a new guest cart when
        it is missing or malformed. None means the backend is unreachable
        right now, not that there is no cart.
        """
        if self.context.authenticated:
            try:
                self.last_user_cart = await self.client.get_cart(CartRef.user())
                return self.last_user_cart.id
            except StorefrontError as e:
                logger.warning(f"User cart fetch failed, falling back to guest cart: {e}")
        return await self.ensure_guest_cart_id()

    async def current_ref(self) -> Optional[CartRef]:
        """Target for a mutation, without fetching the cart first"""
        if self.context.authenticated:
            cart_id = self.last_user_cart.id if self.last_user_cart else None
            return CartRef.user(cart_id)
        cart_id = await self.ensure_guest_cart_id()
        return CartRef.guest(cart_id) if cart_id else None

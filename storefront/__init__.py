"""
Storefront cart client.

Keeps a shopper's cart in step with the storefront backend across guest
browsing, login and checkout.
"""

from .core.context import CartPhase, ClientContext
from .services import (
    AdminCouponClient,
    AuthService,
    BackendClient,
    CartSyncEngine,
    CheckoutService,
    Outcome,
)

__all__ = [
    "CartPhase",
    "ClientContext",
    "AdminCouponClient",
    "AuthService",
    "BackendClient",
    "CartSyncEngine",
    "CheckoutService",
    "Outcome",
]

# Storefront Services

from .admin_coupons import AdminCouponClient
from .auth import AuthService
from .backend_client import BackendClient
from .cart_engine import CartSyncEngine
from .checkout import CheckoutService
from .errors import (
    BackendError,
    BackendUnavailableError,
    Outcome,
    StockConflictError,
    StorefrontError,
)

__all__ = [
    "AdminCouponClient",
    "AuthService",
    "BackendClient",
    "CartSyncEngine",
    "CheckoutService",
    "BackendError",
    "BackendUnavailableError",
    "Outcome",
    "StockConflictError",
    "StorefrontError",
]

# Storefront Proxy Routes

from .auth import router as auth_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .coupons import router as coupons_router

__all__ = ["auth_router", "cart_router", "checkout_router", "coupons_router"]

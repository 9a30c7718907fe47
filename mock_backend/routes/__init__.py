# API Routes

from .auth import router as auth_router
from .carts import router as carts_router
from .coupons import router as coupons_router, admin_router as admin_coupons_router
from .me import router as me_router
from .orders import router as orders_router

__all__ = [
    "auth_router",
    "carts_router",
    "coupons_router",
    "admin_coupons_router",
    "me_router",
    "orders_router",
]

# Database modules

from .products import product_db, ProductDatabase
from .coupons import coupon_db, CouponDatabase
from .carts import cart_db, CartDatabase
from .orders import order_db, OrderDatabase
from .users import user_db, UserDatabase


def reset_all() -> None:
    """Restore every store to its seeded state"""
    for db in (product_db, coupon_db, cart_db, order_db, user_db):
        db.reset()


__all__ = [
    "product_db",
    "ProductDatabase",
    "coupon_db",
    "CouponDatabase",
    "cart_db",
    "CartDatabase",
    "order_db",
    "OrderDatabase",
    "user_db",
    "UserDatabase",
    "reset_all",
]

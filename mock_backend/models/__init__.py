# Mock Backend Models

from .cart import Cart, CartItem
from .coupon import Coupon, DiscountType
from .order import Order, OrderItem, OrderStatus, PaymentMethod
from .product import Product
from .user import User

__all__ = [
    "Cart",
    "CartItem",
    "Coupon",
    "DiscountType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "Product",
    "User",
]

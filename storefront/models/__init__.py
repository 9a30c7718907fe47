# Storefront Models

from .cart import CartItem, CartView, CartOwner, CartRef
from .coupon import (
    AdminCoupon,
    CategoryTarget,
    CouponDiscountType,
    CouponDraft,
    CouponPreviewContext,
    CouponSummary,
    CouponTarget,
    CouponValidation,
    CustomerTarget,
    GlobalTarget,
    ProductTarget,
    normalize_coupon_code,
)
from .order import CardDetails, CardPayment, CashOnDelivery, CheckoutDetails, OrderView
from .user import AuthTokens, UserProfile

__all__ = [
    "CartItem",
    "CartView",
    "CartOwner",
    "CartRef",
    "AdminCoupon",
    "CategoryTarget",
    "CouponDiscountType",
    "CouponDraft",
    "CouponPreviewContext",
    "CouponSummary",
    "CouponTarget",
    "CouponValidation",
    "CustomerTarget",
    "GlobalTarget",
    "ProductTarget",
    "normalize_coupon_code",
    "CardDetails",
    "CardPayment",
    "CashOnDelivery",
    "CheckoutDetails",
    "OrderView",
    "AuthTokens",
    "UserProfile",
]

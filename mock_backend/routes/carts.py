"""Guest cart routes, plus the cart operations shared with /me/cart"""

import logging
from typing import Optional

from fastapi import APIRouter, Body

from ..database.carts import cart_db
from ..database.coupons import coupon_db
from ..database.products import product_db
from ..errors import ApiError, envelope, not_found
from ..models.cart import AddItemRequest, Cart, CouponCodeRequest, UpdateItemRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/carts", tags=["Carts"])


# ==================== Shared operations ====================

def add_item(cart: Cart, request: AddItemRequest) -> Cart:
    product = product_db.get_product(request.product_id)
    if not product:
        raise ApiError(404, "PRODUCT_NOT_FOUND", "Product not found", {"productId": request.product_id})

    in_cart = next((i.quantity for i in cart.items if i.product_id == product.id), 0)
    if in_cart + request.quantity > product.stock:
        raise ApiError(
            400,
            "INSUFFICIENT_STOCK",
            f"Insufficient stock. Available: {product.stock}",
            {product.id: str(product.stock)},
        )
    return cart_db.add_item(cart, product, request.quantity)


def update_item(cart: Cart, product_id: str, request: UpdateItemRequest) -> Cart:
    if request.quantity > 0:
        product = product_db.get_product(product_id)
        if product and request.quantity > product.stock:
            raise ApiError(
                400,
                "INSUFFICIENT_STOCK",
                f"Insufficient stock. Available: {product.stock}",
                {product_id: str(product.stock)},
            )
    updated = cart_db.set_quantity(cart, product_id, request.quantity)
    if updated is None:
        raise ApiError(404, "NOT_FOUND", "Item not in cart", {"productId": product_id})
    return updated


def apply_coupon(cart: Cart, code: Optional[str]) -> Cart:
    """Apply a coupon, or clear it when code is empty"""
    code = (code or "").strip().upper()
    if not code:
        cart.applied_coupon_code = None
        cart_db.recalculate(cart)
        return cart

    coupon = coupon_db.get_by_code(code)
    if not coupon:
        raise ApiError(400, "COUPON_NOT_FOUND", "Coupon not found", {"code": "Unknown coupon code"})

    check = coupon_db.evaluate(
        coupon,
        cart.subtotal,
        [item.product_id for item in cart.items],
        customer_id=cart.user_id,
        line_totals={item.product_id: item.line_total for item in cart.items},
    )
    if not check.valid:
        raise ApiError(400, check.error_code, check.message, {"code": check.message})

    cart.applied_coupon_code = coupon.code
    cart_db.recalculate(cart)
    logger.info(f"Applied coupon {coupon.code} to cart {cart.id}")
    return cart


def sync_summary(cart: Cart, request: Optional[CouponCodeRequest]) -> Cart:
    """
    Fresh totals for a cart.

    A body carrying `code` applies that coupon (null clears it); an empty
    body only recomputes.
    """
    if request is not None and "code" in request.model_fields_set:
        return apply_coupon(cart, request.code)
    cart_db.recalculate(cart)
    return cart


def _guest_cart(cart_id: str) -> Cart:
    cart = cart_db.get_guest_cart(cart_id)
    if not cart:
        raise not_found("Cart")
    return cart


# ==================== Guest cart APIs ====================

@router.post("", status_code=201)
async def create_cart():
    """Create a new guest cart"""
    cart = cart_db.create_cart()
    logger.info(f"Created guest cart {cart.id}")
    return envelope({"cartId": cart.id, **cart.to_wire()}, meta={"cartId": cart.id}, status_code=201)


@router.get("/{cart_id}")
async def get_cart(cart_id: str):
    return envelope(_guest_cart(cart_id).to_wire())


@router.delete("/{cart_id}")
async def clear_cart(cart_id: str):
    """Clear all items from cart"""
    return envelope(cart_db.clear_cart(_guest_cart(cart_id)).to_wire())


@router.post("/{cart_id}/items")
async def add_to_cart(cart_id: str, request: AddItemRequest):
    return envelope(add_item(_guest_cart(cart_id), request).to_wire())


@router.patch("/{cart_id}/items/{product_id}")
async def update_cart_item(cart_id: str, product_id: str, request: UpdateItemRequest):
    return envelope(update_item(_guest_cart(cart_id), product_id, request).to_wire())


@router.delete("/{cart_id}/items/{product_id}")
async def remove_from_cart(cart_id: str, product_id: str):
    return envelope(cart_db.remove_item(_guest_cart(cart_id), product_id).to_wire())


@router.patch("/{cart_id}/summary")
async def cart_summary(cart_id: str, request: Optional[CouponCodeRequest] = Body(None)):
    return envelope(sync_summary(_guest_cart(cart_id), request).to_wire())


@router.post("/{cart_id}/apply-coupon")
async def apply_cart_coupon(cart_id: str, request: CouponCodeRequest):
    return envelope(apply_coupon(_guest_cart(cart_id), request.code).to_wire())


@router.delete("/{cart_id}/coupon")
async def remove_cart_coupon(cart_id: str):
    return envelope(apply_coupon(_guest_cart(cart_id), None).to_wire())

"""Signed-in user's cart and orders"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..database.carts import cart_db
from ..database.orders import order_db
from ..errors import ApiError, envelope
from ..models.cart import AddItemRequest, CouponCodeRequest, MergeRequest, UpdateItemRequest
from ..models.order import OrderRequest
from ..models.user import User
from ..security import require_user
from .carts import add_item, apply_coupon, sync_summary, update_item
from .orders import place_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/me", tags=["Me"])


# ==================== Cart APIs ====================

@router.get("/cart")
async def get_cart(user: User = Depends(require_user)):
    """The user's cart, created on first access"""
    return envelope(cart_db.get_user_cart(user.id).to_wire())


@router.delete("/cart")
async def clear_cart(user: User = Depends(require_user)):
    return envelope(cart_db.clear_cart(cart_db.get_user_cart(user.id)).to_wire())


@router.post("/cart/items")
async def add_to_cart(request: AddItemRequest, user: User = Depends(require_user)):
    return envelope(add_item(cart_db.get_user_cart(user.id), request).to_wire())


@router.patch("/cart/items/{product_id}")
async def update_cart_item(product_id: str, request: UpdateItemRequest, user: User = Depends(require_user)):
    return envelope(update_item(cart_db.get_user_cart(user.id), product_id, request).to_wire())


@router.delete("/cart/items/{product_id}")
async def remove_from_cart(product_id: str, user: User = Depends(require_user)):
    cart = cart_db.get_user_cart(user.id)
    return envelope(cart_db.remove_item(cart, product_id).to_wire())


@router.patch("/cart/summary")
async def cart_summary(
    request: Optional[CouponCodeRequest] = Body(None),
    user: User = Depends(require_user),
):
    return envelope(sync_summary(cart_db.get_user_cart(user.id), request).to_wire())


@router.post("/cart/apply-coupon")
async def apply_cart_coupon(request: CouponCodeRequest, user: User = Depends(require_user)):
    return envelope(apply_coupon(cart_db.get_user_cart(user.id), request.code).to_wire())


@router.delete("/cart/coupon")
async def remove_cart_coupon(user: User = Depends(require_user)):
    return envelope(apply_coupon(cart_db.get_user_cart(user.id), None).to_wire())


@router.post("/cart/merge")
async def merge_cart(request: MergeRequest, user: User = Depends(require_user)):
    """Fold a guest cart into the user's cart"""
    if request.strategy not in ("sum", "replace"):
        raise ApiError(400, "VALIDATION_ERROR", "Unknown merge strategy", {"strategy": request.strategy})
    guest = cart_db.get_guest_cart(request.guest_cart_id)
    if not guest:
        raise ApiError(404, "NOT_FOUND", "Guest cart not found", {"guestCartId": request.guest_cart_id})
    cart = cart_db.merge(guest, cart_db.get_user_cart(user.id), request.strategy)
    return envelope(cart.to_wire())


# ==================== Order APIs ====================

@router.get("/orders")
async def list_orders(user: User = Depends(require_user)):
    return envelope([o.to_wire() for o in order_db.list_for_user(user.id)])


@router.post("/orders", status_code=201)
async def create_order(request: OrderRequest, user: User = Depends(require_user)):
    order = place_order(cart_db.get_user_cart(user.id), request, user)
    return envelope(order.to_wire(), status_code=201)

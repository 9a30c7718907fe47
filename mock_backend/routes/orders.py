"""Order placement and lookup routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..database.carts import cart_db
from ..database.coupons import coupon_db
from ..database.orders import order_db
from ..database.products import product_db
from ..errors import ApiError, envelope, not_found
from ..models.cart import Cart
from ..models.order import Order, OrderRequest, PaymentMethod
from ..models.user import User
from ..security import optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


def place_order(cart: Cart, request: OrderRequest, user: Optional[User] = None) -> Order:
    """
    Turn a cart into an order.

    Stock is checked for every line before anything is reserved; shortages
    come back as 409 OUT_OF_STOCK with `fields` mapping product id to the
    quantity still available.
    """
    if not cart.items:
        raise ApiError(400, "CART_EMPTY", "Cart is empty")
    if request.payment_method == PaymentMethod.CARD and request.card is None:
        raise ApiError(400, "VALIDATION_ERROR", "Card details are required", {"card": "required"})

    shortages: dict[str, str] = {}
    for item in cart.items:
        product = product_db.get_product(item.product_id)
        available = product.stock if product else 0
        if item.quantity > available:
            shortages[item.product_id] = str(available)
    if shortages:
        logger.info(f"Order for cart {cart.id} refused, out of stock: {shortages}")
        raise ApiError(409, "OUT_OF_STOCK", "Some items are out of stock", shortages)

    for item in cart.items:
        product_db.update_stock(item.product_id, -item.quantity)
    if cart.applied_coupon_code:
        coupon_db.record_use(cart.applied_coupon_code)

    order = order_db.create_order(cart, request, user_id=user.id if user else None)
    if user:
        cart_db.clear_cart(cart)
    else:
        cart_db.delete_cart(cart.id)
    logger.info(f"Order {order.order_number_formatted} created from cart {cart.id}")
    return order


def _visible(order: Optional[Order], user: Optional[User]) -> Order:
    if not order:
        raise not_found("Order")
    if order.user_id and (user is None or (user.id != order.user_id and user.role != "ADMIN")):
        raise not_found("Order")
    return order


@router.post("", status_code=201)
async def create_guest_order(request: OrderRequest):
    """Guest checkout for the cart named in the body"""
    if not request.cart_id:
        raise ApiError(400, "VALIDATION_ERROR", "cartId is required", {"cartId": "required"})
    cart = cart_db.get_guest_cart(request.cart_id)
    if not cart:
        raise not_found("Cart")
    return envelope(place_order(cart, request).to_wire(), status_code=201)


@router.get("/number/{number}")
async def get_order_by_number(number: str, user: Optional[User] = Depends(optional_user)):
    return envelope(_visible(order_db.get_by_number(number), user).to_wire())


@router.get("/{order_id}")
async def get_order(order_id: str, user: Optional[User] = Depends(optional_user)):
    return envelope(_visible(order_db.get_order(order_id), user).to_wire())

"""Cart storage for the mock backend"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..models.cart import Cart, CartItem
from ..models.product import Product
from .coupons import coupon_db

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CartDatabase:
    """In-memory cart storage for guests and signed-in users"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.carts: dict[str, Cart] = {}
        self.user_carts: dict[str, str] = {}

    def create_cart(self, user_id: Optional[str] = None) -> Cart:
        """Create a new cart"""
        now = _now()
        cart = Cart(id=str(uuid.uuid4()), user_id=user_id, created_at=now, updated_at=now)
        self.carts[cart.id] = cart
        if user_id:
            self.user_carts[user_id] = cart.id
        return cart

    def get_cart(self, cart_id: str) -> Optional[Cart]:
        """Get a cart by ID"""
        return self.carts.get(cart_id)

    def get_guest_cart(self, cart_id: str) -> Optional[Cart]:
        """A cart reachable by id without a session; user carts are not"""
        cart = self.carts.get(cart_id)
        return cart if cart and cart.user_id is None else None

    def get_user_cart(self, user_id: str) -> Cart:
        """The user's cart, created on first access"""
        cart_id = self.user_carts.get(user_id)
        if cart_id and cart_id in self.carts:
            return self.carts[cart_id]
        return self.create_cart(user_id)

    def delete_cart(self, cart_id: str) -> bool:
        """Delete a cart"""
        cart = self.carts.pop(cart_id, None)
        if cart is None:
            return False
        if cart.user_id and self.user_carts.get(cart.user_id) == cart_id:
            del self.user_carts[cart.user_id]
        return True

    # ==================== Items ====================

    @staticmethod
    def find_item(cart: Cart, product_id: str) -> Optional[CartItem]:
        return next((item for item in cart.items if item.product_id == product_id), None)

    def add_item(self, cart: Cart, product: Product, quantity: int) -> Cart:
        """Add to an existing line or create one"""
        item = self.find_item(cart, product.id)
        if item:
            item.quantity += quantity
        else:
            cart.items.append(CartItem(
                product_id=product.id,
                name=product.name,
                quantity=quantity,
                price=product.price,
                discounted_price=product.discounted_price,
                stock=product.stock,
            ))
        self.recalculate(cart)
        return cart

    def set_quantity(self, cart: Cart, product_id: str, quantity: int) -> Optional[Cart]:
        """Set a line's quantity; None when the line does not exist"""
        item = self.find_item(cart, product_id)
        if not item:
            return None
        if quantity <= 0:
            cart.items = [i for i in cart.items if i.product_id != product_id]
        else:
            item.quantity = quantity
        self.recalculate(cart)
        return cart

    def remove_item(self, cart: Cart, product_id: str) -> Cart:
        cart.items = [i for i in cart.items if i.product_id != product_id]
        self.recalculate(cart)
        return cart

    def clear_cart(self, cart: Cart) -> Cart:
        """Clear all items and the coupon"""
        cart.items = []
        cart.applied_coupon_code = None
        self.recalculate(cart)
        return cart

    def merge(self, guest: Cart, user_cart: Cart, strategy: str = "sum") -> Cart:
        """
        Fold a guest cart into a user cart and delete the guest cart.

        `sum` adds quantities for products in both carts; `replace` takes
        the guest quantity for those products. Lines only in one cart are
        kept either way.
        """
        for guest_item in guest.items:
            item = self.find_item(user_cart, guest_item.product_id)
            if item is None:
                user_cart.items.append(guest_item.model_copy())
            elif strategy == "replace":
                item.quantity = guest_item.quantity
            else:
                item.quantity += guest_item.quantity
        if guest.applied_coupon_code and not user_cart.applied_coupon_code:
            user_cart.applied_coupon_code = guest.applied_coupon_code
        self.delete_cart(guest.id)
        self.recalculate(user_cart)
        logger.info(f"Merged cart {guest.id} into {user_cart.id} ({strategy})")
        return user_cart

    # ==================== Totals ====================

    def recalculate(self, cart: Cart) -> None:
        """Recalculate line totals, coupon discount and cart totals"""
        for item in cart.items:
            unit = item.discounted_price if item.discounted_price is not None else item.price
            item.line_total = round(unit * item.quantity, 2)

        cart.total_quantity = sum(item.quantity for item in cart.items)
        cart.subtotal = round(sum(item.line_total for item in cart.items), 2)
        cart.discount_amount = 0.0

        if cart.applied_coupon_code:
            coupon = coupon_db.get_by_code(cart.applied_coupon_code)
            check = coupon_db.evaluate(
                coupon,
                cart.subtotal,
                [item.product_id for item in cart.items],
                customer_id=cart.user_id,
                line_totals={item.product_id: item.line_total for item in cart.items},
            ) if coupon else None
            if check is None or not check.valid or not cart.items:
                # A coupon that stopped qualifying falls off the cart
                cart.applied_coupon_code = None
            else:
                cart.discount_amount = min(check.discount_amount, cart.subtotal)

        cart.total = round(max(cart.subtotal - cart.discount_amount, 0.0), 2)
        cart.updated_at = _now()


# Singleton instance
cart_db = CartDatabase()

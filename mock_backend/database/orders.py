"""Order storage for the mock backend"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from ..models.cart import Cart
from ..models.order import Order, OrderItem, OrderRequest


class OrderDatabase:
    """In-memory order storage"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.orders: dict[str, Order] = {}
        self._sequence = 0

    def create_order(self, cart: Cart, request: OrderRequest, user_id: Optional[str] = None) -> Order:
        """Create an order from a cart"""
        self._sequence += 1
        order_items = [
            OrderItem(
                product_id=item.product_id,
                name=item.name,
                price=item.price,
                discounted_price=item.discounted_price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in cart.items
        ]

        order = Order(
            id=str(uuid.uuid4()),
            user_id=user_id,
            order_number=str(self._sequence),
            order_number_formatted=f"ORD-{self._sequence:06d}",
            items=order_items,
            subtotal=cart.subtotal,
            discount_amount=cart.discount_amount,
            total=cart.total,
            coupon_code=cart.applied_coupon_code,
            payment_method=request.payment_method,
            card_last_four=request.card.number[-4:] if request.card else None,
            shipping_address=f"{request.address}, {request.city} {request.postal_code}",
            email=request.email,
            created_at=datetime.now(timezone.utc),
        )

        self.orders[order.id] = order
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def get_by_number(self, number: str) -> Optional[Order]:
        return next(
            (o for o in self.orders.values() if number in (o.order_number, o.order_number_formatted)),
            None,
        )

    def list_for_user(self, user_id: str) -> list[Order]:
        """A user's orders, newest first"""
        orders = [o for o in self.orders.values() if o.user_id == user_id]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders


# Singleton instance
order_db = OrderDatabase()

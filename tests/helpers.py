"""Shared test helpers"""

from storefront.services.auth import AuthService
from storefront.services.cart_engine import CartSyncEngine

SHOPPER = ("shopper@example.com", "secret123")
ADMIN = ("admin@example.com", "admin123")


def envelope(data=None, meta=None, error=None) -> dict:
    """Backend response body"""
    return {"data": data, "meta": meta, "error": error}


def cart_payload(cart_id: str, items=(), **overrides) -> dict:
    """Cart body as the backend would send it; items are (product id, quantity, price)"""
    lines = [
        {"productId": pid, "name": pid, "quantity": qty, "price": price, "lineTotal": price * qty}
        for pid, qty, price in items
    ]
    subtotal = sum(line["lineTotal"] for line in lines)
    body = {
        "id": cart_id,
        "userId": None,
        "items": lines,
        "totalQuantity": sum(line["quantity"] for line in lines),
        "subtotal": subtotal,
        "discountAmount": 0,
        "total": subtotal,
        "appliedCouponCode": None,
    }
    body.update(overrides)
    return body


async def sign_in(engine: CartSyncEngine, credentials=SHOPPER):
    """Log in through AuthService so the merge edge fires"""
    outcome = await AuthService(engine).login(*credentials)
    assert outcome, outcome.message
    return outcome.value

"""Order models for the mock backend"""

from datetime import datetime
from enum import Enum
from typing import Optional

from .base import ApiModel


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    COD = "COD"
    CARD = "CARD"


class CardInput(ApiModel):
    number: str
    expiry: str
    cvv: str


class OrderRequest(ApiModel):
    """Checkout form; guests also name their cart"""
    cart_id: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None
    address: str
    city: str
    postal_code: str
    payment_method: PaymentMethod = PaymentMethod.COD
    card: Optional[CardInput] = None


class OrderItem(ApiModel):
    product_id: str
    name: str
    price: float
    discounted_price: Optional[float] = None
    quantity: int
    line_total: float


class Order(ApiModel):
    id: str
    user_id: Optional[str] = None
    order_number: str
    order_number_formatted: str
    items: list[OrderItem]
    subtotal: float
    discount_amount: float
    total: float
    coupon_code: Optional[str] = None
    payment_method: PaymentMethod
    card_last_four: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: str
    email: str
    created_at: datetime

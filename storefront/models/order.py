"""Checkout and order models"""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .base import Money, WireModel


class CardDetails(WireModel):
    number: str = Field(pattern=r"^\d{12,19}$")
    expiry: str = Field(pattern=r"^(0[1-9]|1[0-2])/\d{2}$")
    cvv: str = Field(pattern=r"^\d{3,4}$")


class CashOnDelivery(WireModel):
    payment_method: Literal["COD"] = "COD"


class CardPayment(WireModel):
    payment_method: Literal["CARD"] = "CARD"
    card: CardDetails


Payment = Annotated[Union[CashOnDelivery, CardPayment], Field(discriminator="payment_method")]


class CheckoutDetails(WireModel):
    """Customer-entered checkout form"""
    name: str
    email: str
    phone: Optional[str] = None
    address: str
    city: str
    postal_code: str
    payment: Payment = Field(default_factory=CashOnDelivery)

    def to_wire(self) -> dict:
        payload = {
            "name": self.name,
            "email": self.email,
            "address": self.address,
            "city": self.city,
            "postalCode": self.postal_code,
            "paymentMethod": self.payment.payment_method,
        }
        if self.phone:
            payload["phone"] = self.phone
        if isinstance(self.payment, CardPayment):
            payload["card"] = self.payment.card.model_dump()
        return payload


class OrderItemView(WireModel):
    product_id: str
    name: Optional[str] = None
    price: Optional[Money] = None
    discounted_price: Optional[Money] = None
    quantity: int
    line_total: Optional[Money] = None


class OrderView(WireModel):
    id: str
    user_id: Optional[str] = None
    order_number: Optional[str] = None
    order_number_formatted: Optional[str] = None
    items: list[OrderItemView] = []
    subtotal: Optional[Money] = None
    discount_amount: Optional[Money] = None
    total: Money
    coupon_code: Optional[str] = None
    payment_method: Optional[str] = None
    status: Optional[str] = None
    shipping_address: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def display_number(self) -> str:
        return self.order_number_formatted or self.order_number or self.id

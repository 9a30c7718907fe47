"""
Tests for wire models
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront.models.cart import CartView
from storefront.models.coupon import (
    AdminCoupon,
    CategoryTarget,
    CouponDiscountType,
    CouponDraft,
    CustomerTarget,
    GlobalTarget,
    ProductTarget,
)
from storefront.models.order import CardPayment, CashOnDelivery, CheckoutDetails

TARGET_KEYS = {"productIds", "categoryIds", "customerIds", "global"}


class TestCartView:
    """Tests for CartView."""

    def test_camel_case_payload(self):
        cart = CartView.model_validate({
            "id": "c1",
            "items": [{"productId": 42, "quantity": 2, "price": 50, "discountedPrice": 45}],
            "totalQuantity": 2,
            "subtotal": 90,
            "appliedCouponCode": None,
        })

        assert cart.items[0].product_id == "42"
        assert cart.items[0].unit_price == Decimal("45")
        assert cart.total == Decimal("90")
        assert cart.discount_amount == Decimal("0")

    def test_zero_quantity_lines_dropped(self):
        cart = CartView.model_validate({
            "id": "c1",
            "items": [
                {"productId": "a", "quantity": 0, "price": 1},
                {"productId": "b", "quantity": 1, "price": 1},
            ],
        })

        assert [item.product_id for item in cart.items] == ["b"]

    def test_null_discount_is_zero(self):
        cart = CartView.model_validate({"id": "c1", "subtotal": 10, "discountAmount": None})

        assert cart.discount_amount == Decimal("0")
        assert cart.total == Decimal("10")

    def test_optimistic_edit_recomputes_totals(self):
        cart = CartView.model_validate({
            "id": "c1",
            "items": [
                {"productId": "a", "quantity": 1, "price": 10},
                {"productId": "b", "quantity": 2, "price": 5},
            ],
            "subtotal": 20,
            "discountAmount": 25,
            "appliedCouponCode": "BIG",
        })

        edited = cart.with_quantity("a", 3)

        assert edited.total_quantity == 5
        assert edited.subtotal == Decimal("40")
        assert edited.total == Decimal("15")
        assert cart.quantity_of("a") == 1

        emptied = edited.without_item("a").without_item("b")
        assert emptied.total == Decimal("0")
        assert emptied.total_quantity == 0

    def test_wire_form(self):
        cart = CartView.model_validate({"id": "c1", "subtotal": "12.50"})

        wire = cart.to_wire()

        assert wire["subtotal"] == 12.5
        assert "appliedCouponCode" not in wire
        assert wire["totalQuantity"] == 0


class TestCouponTargets:
    """A coupon carries exactly one target."""

    @pytest.mark.parametrize("target, expected", [
        (GlobalTarget(), {"global": True}),
        (ProductTarget(product_id="p1"), {"productIds": ["p1"]}),
        (CategoryTarget(category_id="c1"), {"categoryIds": ["c1"]}),
        (CustomerTarget(customer_id="u1"), {"customerIds": ["u1"]}),
    ])
    def test_single_targeting_field(self, target, expected):
        draft = CouponDraft(
            code=" spring ",
            discount_type=CouponDiscountType.PERCENT,
            discount=Decimal("10"),
            target=target,
        )

        wire = draft.to_wire()

        assert {k: v for k, v in wire.items() if k in TARGET_KEYS} == expected
        assert wire["code"] == "SPRING"

    def test_target_from_tagged_dict(self):
        draft = CouponDraft.model_validate({
            "code": "X",
            "discount_type": "FIXED",
            "discount": 5,
            "target": {"kind": "category", "category_id": "c9"},
        })

        assert draft.target == CategoryTarget(category_id="c9")

    def test_unknown_target_kind_rejected(self):
        with pytest.raises(ValidationError):
            CouponDraft.model_validate({
                "code": "X",
                "discount_type": "FIXED",
                "discount": 5,
                "target": {"kind": "brand", "brand_id": "b1"},
            })

    def test_non_positive_discount_rejected(self):
        with pytest.raises(ValidationError):
            CouponDraft(code="X", discount_type=CouponDiscountType.FIXED, discount=Decimal("0"))

    def test_stored_coupon_target(self):
        base = {"id": "1", "code": "X", "discountType": "PERCENT", "discount": 5}

        assert AdminCoupon.model_validate(base).target == GlobalTarget()
        assert AdminCoupon.model_validate({**base, "customerIds": ["u1"]}).target == CustomerTarget(customer_id="u1")
        assert AdminCoupon.model_validate({**base, "productIds": ["p"], "categoryIds": ["c"]}).target is None


class TestCheckoutDetails:
    """Tests for the checkout form model."""

    FORM = {
        "name": "Sam",
        "email": "sam@example.com",
        "address": "1 Main St",
        "city": "Springfield",
        "postalCode": "12345",
    }

    def test_cash_on_delivery_default(self):
        details = CheckoutDetails.model_validate(self.FORM)

        assert isinstance(details.payment, CashOnDelivery)
        assert details.to_wire() == {**self.FORM, "paymentMethod": "COD"}

    def test_card_payment_from_camel_case(self):
        details = CheckoutDetails.model_validate({
            **self.FORM,
            "payment": {
                "paymentMethod": "CARD",
                "card": {"number": "4111111111111111", "expiry": "01/29", "cvv": "999"},
            },
        })

        assert isinstance(details.payment, CardPayment)
        wire = details.to_wire()
        assert wire["paymentMethod"] == "CARD"
        assert wire["card"]["number"] == "4111111111111111"

    @pytest.mark.parametrize("card", [
        {"number": "4111", "expiry": "01/29", "cvv": "999"},
        {"number": "4111111111111111", "expiry": "13/29", "cvv": "999"},
        {"number": "4111111111111111", "expiry": "01/29", "cvv": "9"},
    ])
    def test_bad_card_rejected(self, card):
        with pytest.raises(ValidationError):
            CheckoutDetails.model_validate({**self.FORM, "payment": {"paymentMethod": "CARD", "card": card}})

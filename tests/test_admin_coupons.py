"""
Tests for admin coupon management
"""

import json
from decimal import Decimal

import httpx
import pytest

from helpers import ADMIN, envelope, sign_in
from storefront.models.coupon import (
    CategoryTarget,
    CouponDiscountType,
    CouponDraft,
    GlobalTarget,
    ProductTarget,
)
from storefront.services.admin_coupons import AdminCouponClient
from storefront.services.errors import BackendError


@pytest.fixture
async def admin(make_engine):
    engine = make_engine()
    await sign_in(engine, ADMIN)
    return AdminCouponClient(engine.client)


def _draft(**overrides) -> CouponDraft:
    values = {
        "code": "summer15",
        "discount_type": CouponDiscountType.PERCENT,
        "discount": Decimal("15"),
        "target": ProductTarget(product_id="prod-001"),
    }
    values.update(overrides)
    return CouponDraft(**values)


class TestCouponCrud:
    """Create, update and delete through the admin API."""

    async def test_create_with_single_target(self, admin):
        outcome = await admin.create_coupon(_draft())

        assert outcome
        coupon = outcome.value
        assert coupon.code == "SUMMER15"
        assert coupon.product_ids == ["prod-001"]
        assert coupon.target == ProductTarget(product_id="prod-001")

    async def test_update_switches_target(self, admin):
        created = (await admin.create_coupon(_draft())).value

        outcome = await admin.update_coupon(created.id, _draft(target=CategoryTarget(category_id="cat-books")))

        assert outcome
        assert outcome.value.product_ids == []
        assert outcome.value.target == CategoryTarget(category_id="cat-books")

    async def test_update_to_global_clears_target(self, admin):
        created = (await admin.create_coupon(_draft())).value

        outcome = await admin.update_coupon(created.id, _draft(target=GlobalTarget()))

        assert outcome
        assert outcome.value.product_ids == []
        assert outcome.value.target == GlobalTarget()

    async def test_update_payload_has_one_targeting_field(self, make_mock_engine):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=envelope({
                "id": "c1",
                "code": "SUMMER15",
                "discountType": "PERCENT",
                "discount": 15,
                "productIds": ["prod-42"],
            }))

        client = AdminCouponClient(make_mock_engine(handler).client)

        outcome = await client.update_coupon("c1", _draft(target=ProductTarget(product_id="prod-42")))

        assert outcome
        sent = [key for key in ("productIds", "categoryIds", "customerIds", "global") if key in bodies[0]]
        assert sent == ["productIds"]

    async def test_duplicate_code_conflicts(self, admin):
        outcome = await admin.create_coupon(_draft(code="save10"))

        assert not outcome
        assert outcome.error.is_conflict

    async def test_backend_rejects_two_targets(self, admin):
        with pytest.raises(BackendError) as exc_info:
            await admin.client.admin_create_coupon({
                "code": "BOTH",
                "discountType": "FIXED",
                "discount": 5,
                "productIds": ["prod-001"],
                "categoryIds": ["cat-audio"],
            })

        assert exc_info.value.status == 400
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert set(exc_info.value.fields) == {"productIds", "categoryIds"}

    async def test_deactivate_and_delete(self, admin):
        created = (await admin.create_coupon(_draft())).value

        paused = await admin.set_active(created.id, False)
        assert paused.value.active is False

        assert await admin.delete_coupon(created.id)
        missing = await admin.get_coupon(created.id)
        assert not missing
        assert missing.error.is_not_found


class TestCouponListing:
    """Listing and the dashboard summary."""

    async def test_summary(self, admin):
        outcome = await admin.summary()

        assert outcome
        assert (outcome.value.total, outcome.value.active, outcome.value.expired) == (6, 4, 1)

    async def test_search(self, admin):
        outcome = await admin.list_coupons(search="save")

        assert [c.code for c in outcome.value] == ["SAVE10"]

    async def test_sort_and_limit(self, admin):
        outcome = await admin.list_coupons(sort=[("code", "asc")], limit=2)

        assert [c.code for c in outcome.value] == ["AUDIO20", "FIVEOFF"]

    async def test_shopper_is_forbidden(self, make_engine):
        engine = make_engine()
        await sign_in(engine)

        outcome = await AdminCouponClient(engine.client).summary()

        assert not outcome
        assert outcome.error.status == 403

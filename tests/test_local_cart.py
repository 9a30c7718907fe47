"""
Tests for the opt-in local cart used while the backend is unreachable
"""

from decimal import Decimal

import httpx
import pytest

from helpers import cart_payload, envelope
from storefront.core.context import ClientContext
from storefront.core.storage import MemoryStorage
from storefront.models.cart import CartView
from storefront.services.local_cart import LOCAL_CART_ID, LocalCartStore

STORAGE_KEY = "RC_GUEST_CART_ID"
LOCAL_KEY = "RC_LOCAL_CART_VIEW"
CART_ID = "55555555-5555-5555-5555-555555555555"


@pytest.fixture
def backend():
    """Handler for a backend holding one line of p1, switchable off"""
    state = {"down": False, "status": 200}

    def handler(request: httpx.Request) -> httpx.Response:
        if state["down"]:
            raise httpx.ConnectError("connection refused", request=request)
        if state["status"] != 200:
            return httpx.Response(
                state["status"], json=envelope(error={"code": "VALIDATION_ERROR", "message": "bad"})
            )
        return httpx.Response(200, json=envelope(cart_payload(CART_ID, [("p1", 1, 10)])))

    handler.state = state
    return handler


class TestOfflineEdits:
    """Mutations while the backend cannot be reached."""

    async def test_edits_apply_locally_until_backend_returns(self, make_mock_engine, backend):
        storage = MemoryStorage({STORAGE_KEY: CART_ID})
        engine = make_mock_engine(backend, storage=storage, local_fallback=True)
        assert await engine.refresh()
        backend.state["down"] = True

        updated = await engine.update_item("p1", 3)

        assert updated
        assert updated.meta["local"] is True
        assert updated.value.quantities() == {"p1": 3}
        assert updated.value.subtotal == Decimal("30")
        assert storage.get(LOCAL_KEY) is not None

        added = await engine.add_item("p1", 1)
        assert added.value.quantity_of("p1") == 4

        unknown = await engine.add_item("p9", 1)
        assert not unknown
        assert unknown.code == "BACKEND_UNAVAILABLE"
        assert engine.cart.quantities() == {"p1": 4}

        coupon = await engine.apply_coupon("save10")
        assert coupon
        assert coupon.value.applied_coupon_code == "SAVE10"
        assert coupon.value.discount_amount == Decimal("0")
        assert coupon.value.total == Decimal("40")

        removed = await engine.remove_item("p1")
        assert removed.value.items == []

        backend.state["down"] = False
        refreshed = await engine.refresh()

        assert refreshed
        assert "local" not in refreshed.meta
        assert engine.cart.id == CART_ID
        assert engine.cart.quantities() == {"p1": 1}
        assert storage.get(LOCAL_KEY) is None

    async def test_refresh_while_down_shows_local_cart(self, make_mock_engine, backend):
        engine = make_mock_engine(
            backend, storage=MemoryStorage({STORAGE_KEY: CART_ID}), local_fallback=True
        )
        await engine.refresh()
        backend.state["down"] = True
        await engine.update_item("p1", 2)
        engine.cart = None

        outcome = await engine.refresh()

        assert outcome
        assert outcome.meta["local"] is True
        assert engine.cart.id == LOCAL_CART_ID
        assert engine.cart.quantities() == {"p1": 2}

    async def test_off_by_default(self, make_mock_engine, backend):
        storage = MemoryStorage({STORAGE_KEY: CART_ID})
        engine = make_mock_engine(backend, storage=storage)
        await engine.refresh()
        backend.state["down"] = True

        outcome = await engine.update_item("p1", 3)

        assert engine.local_cart is None
        assert not outcome
        assert outcome.code == "BACKEND_UNAVAILABLE"
        assert storage.get(LOCAL_KEY) is None

    async def test_rejections_are_not_taken_offline(self, make_mock_engine, backend):
        storage = MemoryStorage({STORAGE_KEY: CART_ID})
        engine = make_mock_engine(backend, storage=storage, local_fallback=True)
        await engine.refresh()
        backend.state["status"] = 400

        outcome = await engine.update_item("p1", 3)

        assert not outcome
        assert outcome.code == "VALIDATION_ERROR"
        assert "local" not in outcome.meta
        assert storage.get(LOCAL_KEY) is None

    async def test_reset_forgets_local_cart(self, make_mock_engine, backend):
        storage = MemoryStorage({STORAGE_KEY: CART_ID})
        engine = make_mock_engine(backend, storage=storage, local_fallback=True)
        await engine.refresh()
        backend.state["down"] = True
        await engine.update_item("p1", 2)

        engine.reset_client_cart()

        assert storage.get(LOCAL_KEY) is None


class TestLocalCartStore:
    """The stored cart itself."""

    @pytest.fixture
    def store(self, settings):
        return LocalCartStore(ClientContext(settings=settings, storage=MemoryStorage()))

    def test_quantity_clamped_to_known_stock(self, store):
        payload = cart_payload(CART_ID, [("p1", 1, 10)])
        payload["items"][0]["stock"] = 2
        seed = CartView.model_validate(payload)

        view = store.set_quantity("p1", 5, seed)

        assert view.id == LOCAL_CART_ID
        assert view.quantities() == {"p1": 2}
        assert store.load().quantities() == {"p1": 2}

    def test_line_known_only_from_seed_is_added(self, store):
        seed = CartView.model_validate(cart_payload(CART_ID, [("p1", 1, 10), ("p2", 1, 5)]))
        store.remove("p2", seed)

        view = store.add("p2", 3, seed)

        assert view.quantities() == {"p1": 1, "p2": 3}
        assert view.subtotal == Decimal("25")

    def test_unreadable_value_is_ignored(self, settings):
        storage = MemoryStorage({LOCAL_KEY: "{not json"})
        store = LocalCartStore(ClientContext(settings=settings, storage=storage))

        assert store.load() is None
        assert store.ensure().id == LOCAL_CART_ID

"""
Tests for cart item mutations
"""

import asyncio
import json
import uuid
from collections import Counter
from decimal import Decimal

import httpx

from helpers import cart_payload, envelope, sign_in
from storefront.core.config import OptimisticFailurePolicy
from storefront.core.context import CartPhase
from storefront.core.storage import MemoryStorage
from storefront.models.cart import CartView
from storefront.services.errors import BackendError

STORAGE_KEY = "RC_GUEST_CART_ID"


class TestAgainstBackend:
    """Mutations against the in-process backend."""

    async def test_add_to_empty_cart(self, make_engine):
        engine = make_engine()

        outcome = await engine.add_item("prod-42", 2)

        assert outcome
        cart = outcome.value
        assert cart.total_quantity == 2
        assert len(cart.items) == 1
        assert cart.items[0].product_id == "prod-42"
        assert cart.items[0].quantity == 2
        assert engine.phase == CartPhase.GUEST
        assert engine.cart_count == 2
        assert not engine.loading

    async def test_update_to_zero_removes_line(self, make_engine):
        engine = make_engine()
        await engine.add_item("prod-42", 3)

        outcome = await engine.update_item("prod-42", 0)

        assert outcome
        assert outcome.value.items == []
        assert outcome.value.total_quantity == 0

    async def test_quantity_invariant_over_update_sequence(self, make_engine):
        engine = make_engine()
        steps = [
            ("prod-42", 3),
            ("prod-001", 2),
            ("prod-42", 1),
            ("prod-001", 0),
            ("prod-002", 4),
            ("prod-42", 0),
            ("prod-42", 2),
        ]

        for product_id, quantity in steps:
            assert await engine.update_item(product_id, quantity)

        cart = engine.cart
        assert cart.quantities() == {"prod-002": 4, "prod-42": 2}
        assert cart.total_quantity == sum(item.quantity for item in cart.items)
        assert all(item.quantity > 0 for item in cart.items)

    async def test_update_missing_line_adds_it(self, make_engine):
        engine = make_engine()
        await engine.add_item("prod-002", 1)

        outcome = await engine.update_item("prod-42", 3)

        assert outcome
        assert outcome.value.quantity_of("prod-42") == 3

    async def test_remove_and_clear(self, make_engine):
        engine = make_engine()
        await engine.add_item("prod-42", 1)
        await engine.add_item("prod-002", 2)

        removed = await engine.remove_item("prod-42")
        assert removed
        assert removed.value.quantities() == {"prod-002": 2}

        cleared = await engine.clear()
        assert cleared
        assert cleared.value.items == []
        assert cleared.value.subtotal == Decimal("0")

    async def test_add_over_stock_fails_with_fields(self, make_engine):
        engine = make_engine()

        outcome = await engine.add_item("prod-005", 10)

        assert not outcome
        assert outcome.code == "INSUFFICIENT_STOCK"
        assert outcome.fields == {"prod-005": "3"}

    async def test_user_cart_mutations(self, make_engine):
        engine = make_engine()
        await sign_in(engine)

        outcome = await engine.add_item("prod-42", 2)

        assert outcome
        assert outcome.value.user_id == engine.context.user_id
        assert engine.context.read_guest_cart_id() is None

    async def test_serialized_mutations_share_one_cart(self, make_engine):
        engine = make_engine(serialize_mutations=True)

        results = await asyncio.gather(
            engine.add_item("prod-42", 1),
            engine.add_item("prod-42", 2),
        )

        assert all(results)
        await engine.refresh()
        assert engine.cart.quantity_of("prod-42") == 3


class TestConcurrentMutations:
    """Unserialized mutations: the last response to arrive wins."""

    async def test_late_response_overwrites_newer_edit(self, make_mock_engine):
        cart_id = str(uuid.uuid4())
        answered = []
        newer_shown = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PATCH" and "/items/" in request.url.path:
                quantity = json.loads(request.content)["quantity"]
                if quantity == 2:
                    await newer_shown.wait()
                answered.append(quantity)
                return httpx.Response(200, json=envelope(cart_payload(cart_id, [("p", quantity, 10)])))
            # Reconciliation reads fail so only the item responses reach the view
            newer_shown.set()
            return httpx.Response(404, json=envelope(error={"code": "NOT_FOUND", "message": "gone"}))

        engine = make_mock_engine(
            handler, storage=MemoryStorage({STORAGE_KEY: cart_id}), serialize_mutations=False
        )

        first, second = await asyncio.gather(
            engine.update_item("p", 2),
            engine.update_item("p", 3),
        )

        assert first and second
        assert answered == [3, 2]
        assert engine.cart.quantities() == {"p": 2}
        assert engine.cart.subtotal == Decimal("20")


class TestBusyFlag:
    """The loading flag covers the request, not just the call."""

    async def test_loading_while_add_in_flight(self, make_mock_engine):
        cart_id = str(uuid.uuid4())
        seen = []

        async def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, engine.loading))
            return httpx.Response(200, json=envelope(cart_payload(cart_id, [("p", 1, 10)])))

        engine = make_mock_engine(handler, storage=MemoryStorage({STORAGE_KEY: cart_id}))

        assert await engine.add_item("p", 1)

        assert seen[0] == ("POST", True)
        assert not engine.loading


class TestGuestReprovision:
    """The single re-provision retry for guest carts."""

    async def test_unknown_guest_cart_is_replaced(self, make_engine):
        stale = str(uuid.uuid4())
        engine = make_engine(storage=MemoryStorage({STORAGE_KEY: stale}))

        outcome = await engine.add_item("prod-42", 1)

        assert outcome
        assert engine.cart.id != stale
        assert engine.context.read_guest_cart_id() == engine.cart.id

    async def test_retry_happens_once(self, make_mock_engine):
        calls = Counter()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST" and request.url.path == "/api/carts":
                calls["create"] += 1
                return httpx.Response(201, json=envelope({"cartId": str(uuid.uuid4())}))
            if request.url.path.endswith("/items"):
                calls["add"] += 1
                return httpx.Response(
                    404, json=envelope(error={"code": "NOT_FOUND", "message": "Cart not found"})
                )
            return httpx.Response(500)

        engine = make_mock_engine(handler, storage=MemoryStorage({STORAGE_KEY: str(uuid.uuid4())}))

        outcome = await engine.add_item("prod-42", 1)

        assert not outcome
        assert outcome.error.is_not_found
        assert calls == {"add": 2, "create": 1}

    async def test_no_retry_for_other_errors(self, make_mock_engine):
        calls = Counter()

        def handler(request: httpx.Request) -> httpx.Response:
            calls[request.method] += 1
            return httpx.Response(
                400, json=envelope(error={"code": "VALIDATION_ERROR", "message": "bad quantity"})
            )

        engine = make_mock_engine(handler, storage=MemoryStorage({STORAGE_KEY: str(uuid.uuid4())}))

        outcome = await engine.add_item("prod-42", 1)

        assert not outcome
        assert calls == {"POST": 1}


class TestOptimisticFailure:
    """What happens to an optimistic edit the backend rejects."""

    CART_ID = "22222222-2222-2222-2222-222222222222"

    def _rejecting_engine(self, make_mock_engine, **kwargs):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                500, json=envelope(error={"code": "INTERNAL", "message": "boom"})
            )

        engine = make_mock_engine(
            handler, storage=MemoryStorage({STORAGE_KEY: self.CART_ID}), **kwargs
        )
        engine.cart = CartView.model_validate(cart_payload(self.CART_ID, [("prod-42", 3, 50)]))
        return engine

    async def test_keep_policy_leaves_edit_in_place(self, make_mock_engine):
        engine = self._rejecting_engine(make_mock_engine)

        outcome = await engine.update_item("prod-42", 1)

        assert not outcome
        assert isinstance(outcome.error, BackendError)
        assert engine.optimistic_failure_policy == OptimisticFailurePolicy.KEEP
        assert engine.cart.quantity_of("prod-42") == 1
        assert engine.cart.subtotal == Decimal("50")

    async def test_rollback_policy_restores_snapshot(self, make_mock_engine):
        engine = self._rejecting_engine(
            make_mock_engine, optimistic_failure_policy=OptimisticFailurePolicy.ROLLBACK
        )

        outcome = await engine.update_item("prod-42", 1)

        assert not outcome
        assert engine.cart.quantity_of("prod-42") == 3
        assert outcome.value.quantity_of("prod-42") == 3

    async def test_keep_policy_on_remove(self, make_mock_engine):
        engine = self._rejecting_engine(make_mock_engine)

        outcome = await engine.remove_item("prod-42")

        assert not outcome
        assert engine.cart.items == []

    async def test_unreachable_backend_is_reported(self, make_mock_engine):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        engine = make_mock_engine(handler, storage=MemoryStorage({STORAGE_KEY: self.CART_ID}))

        outcome = await engine.update_item("prod-42", 2)

        assert not outcome
        assert outcome.code == "BACKEND_UNAVAILABLE"
        assert outcome.message == "Could not reach the store. Please try again."

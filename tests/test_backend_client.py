"""
Tests for the backend HTTP client and envelope handling
"""

import json

import httpx
import pytest

from helpers import envelope
from storefront.core.context import ClientContext
from storefront.core.storage import MemoryStorage
from storefront.models.cart import CartRef
from storefront.services.backend_client import BackendClient
from storefront.services.errors import BackendError, BackendUnavailableError, Outcome, StorefrontError

CART_ID = "44444444-4444-4444-4444-444444444444"


@pytest.fixture
async def make_client(settings):
    clients = []

    def factory(handler, token=None) -> BackendClient:
        context = ClientContext(settings=settings, storage=MemoryStorage())
        if token:
            context.sign_in(token)
        client = BackendClient(context, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()


class TestEnvelope:
    """Parsing of `{data, meta, error}` responses."""

    async def test_error_on_success_status_is_failure(self, make_client):
        def handler(request):
            return httpx.Response(
                200,
                json=envelope(error={"code": "VALIDATION_ERROR", "message": "bad", "fields": {"code": "too short"}}),
            )

        client = make_client(handler)

        with pytest.raises(BackendError) as exc_info:
            await client.get_cart(CartRef.guest(CART_ID))

        error = exc_info.value
        assert error.status == 200
        assert error.code == "VALIDATION_ERROR"
        assert error.fields == {"code": "too short"}
        assert error.message == "bad"

    async def test_non_json_error_body(self, make_client):
        client = make_client(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))

        with pytest.raises(BackendError) as exc_info:
            await client.get_cart(CartRef.guest(CART_ID))

        assert exc_info.value.status == 502
        assert str(exc_info.value) == "Request failed: 502"

    async def test_empty_success_body(self, make_client):
        client = make_client(lambda request: httpx.Response(204))

        assert await client.request_envelope("DELETE", "/admin/coupons/x") == envelope()

    async def test_transport_error_is_unavailable(self, make_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        with pytest.raises(BackendUnavailableError):
            await client.create_guest_cart()

    async def test_guest_cart_id_from_meta(self, make_client):
        client = make_client(lambda request: httpx.Response(201, json=envelope({}, meta={"cartId": CART_ID})))

        assert await client.create_guest_cart() == CART_ID

    async def test_missing_cart_body(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json=envelope(None)))

        with pytest.raises(BackendError) as exc_info:
            await client.get_cart(CartRef.user())

        assert exc_info.value.code == "EMPTY_RESPONSE"


class TestRequests:
    """Paths, headers and bodies sent to the backend."""

    async def test_guest_requests_carry_no_token(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=envelope({"id": CART_ID}))

        client = make_client(handler, token="abc.def.ghi")

        await client.get_cart(CartRef.guest(CART_ID))
        await client.get_cart(CartRef.user())

        assert seen[0].url.path == f"/api/carts/{CART_ID}"
        assert "authorization" not in seen[0].headers
        assert seen[1].url.path == "/api/me/cart"
        assert seen[1].headers["authorization"] == "Bearer abc.def.ghi"

    async def test_summary_body_forms(self, make_client):
        bodies = []

        def handler(request):
            bodies.append(request.content)
            return httpx.Response(200, json=envelope({"id": CART_ID}))

        client = make_client(handler)
        ref = CartRef.guest(CART_ID)

        await client.sync_summary(ref)
        await client.sync_summary(ref, "SAVE10")

        assert bodies[0] == b""
        assert b"SAVE10" in bodies[1]

    async def test_product_id_is_escaped(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=envelope({"id": CART_ID}))

        client = make_client(handler)

        await client.remove_item(CartRef.guest(CART_ID), "a/b c")

        assert seen[0].url.raw_path.decode().endswith("/items/a%2Fb%20c")

    async def test_apply_coupon_endpoint(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=envelope({"id": CART_ID, "appliedCouponCode": "SAVE10"}))

        client = make_client(handler)

        view = await client.apply_coupon(CartRef.guest(CART_ID), "SAVE10")

        assert seen[0].method == "POST"
        assert seen[0].url.path == f"/api/carts/{CART_ID}/apply-coupon"
        assert json.loads(seen[0].content) == {"code": "SAVE10"}
        assert view.applied_coupon_code == "SAVE10"

    async def test_empty_merge_response(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json=envelope(None)))

        assert await client.merge_guest_cart(CART_ID) is None


class TestOutcome:
    """Outcome truthiness and messages."""

    def test_truthiness(self):
        assert Outcome.success(1)
        assert not Outcome.failure(BackendError("nope"))

    def test_unavailable_message(self):
        outcome = Outcome.failure(BackendUnavailableError("connect refused"))

        assert outcome.message == "Could not reach the store. Please try again."
        assert outcome.code == "BACKEND_UNAVAILABLE"

    def test_fields_copied(self):
        error = BackendError("bad", status=400, fields={"email": "taken"})
        outcome = Outcome.failure(error)

        outcome.fields["email"] = "changed"

        assert error.fields == {"email": "taken"}

    def test_errors_do_not_share_fields(self):
        first = BackendUnavailableError("down")
        second = BackendUnavailableError("still down")

        first.fields["cart"] = "stale"

        assert second.fields == {}
        assert StorefrontError("plain").fields == {}

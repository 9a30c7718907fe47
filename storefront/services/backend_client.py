"""
Backend API Client

HTTP client for the storefront backend. Every response is a
`{data, meta, error}` envelope; a non-null `error` means failure whatever the
HTTP status says.
"""

import logging
from typing import Optional, Any

import httpx
from urllib.parse import quote

from ..core.context import ClientContext
from ..models.cart import CartRef, CartView
from .errors import BackendError, BackendUnavailableError

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class BackendClient:
    """
    Client for the storefront backend API.

    Attaches the context's bearer token unless a call opts out with
    `auth=False` (guest cart endpoints are public).
    """

    def __init__(
        self,
        context: ClientContext,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backend client.

        Args:
            context: Client context supplying settings and the access token
            base_url: Backend API root, defaults to settings.backend_base_url
            http_client: Shared httpx client; one is created when omitted
            transport: Transport for a created client (tests pass ASGI/mock transports)
        """
        self.context = context
        self.base_url = (base_url or context.settings.backend_base_url).rstrip("/")
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=context.settings.request_timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client"""
        if self._owns_http_client:
            await self._http_client.aclose()

    def _generate_headers(self, auth: bool, has_body: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if auth and self.context.access_token:
            headers["Authorization"] = f"Bearer {self.context.access_token}"
        return headers

    async def request_envelope(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[Any] = None,
        auth: bool = True,
    ) -> dict[str, Any]:
        """Make a request and return the full envelope"""
        url = f"{self.base_url}{path}"
        headers = self._generate_headers(auth=auth, has_body=body is not None)

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                headers=headers,
                json=body,
                params=params,
            )
        except httpx.TransportError as e:
            logger.error(f"Backend unreachable: {method} {path} - {e}")
            raise BackendUnavailableError(f"Backend unreachable: {e}") from e

        if response.status_code == 204 or not response.content:
            if response.status_code >= 400:
                raise BackendError(
                    f"Request failed: {response.status_code}",
                    status=response.status_code,
                )
            return {"data": None, "meta": None, "error": None}

        try:
            envelope = response.json()
        except ValueError:
            envelope = None

        if not isinstance(envelope, dict):
            if response.status_code >= 400:
                logger.error(f"Request failed: {response.status_code} - {method} {path}")
                raise BackendError(
                    f"Request failed: {response.status_code}",
                    status=response.status_code,
                )
            return {"data": envelope, "meta": None, "error": None}

        error = envelope.get("error")
        if error or response.status_code >= 400:
            error = error if isinstance(error, dict) else {}
            logger.warning(
                f"API error: {method} {path} status={response.status_code} "
                f"code={error.get('code')} fields={error.get('fields')}"
            )
            raise BackendError(
                error.get("message") or f"Request failed: {response.status_code}",
                status=response.status_code,
                code=error.get("code"),
                fields=error.get("fields"),
            )

        return envelope

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[Any] = None,
        auth: bool = True,
    ) -> Any:
        """Make a request and return the envelope's data"""
        envelope = await self.request_envelope(method, path, body=body, params=params, auth=auth)
        return envelope.get("data")

    async def _cart_request(
        self,
        method: str,
        ref: CartRef,
        suffix: str = "",
        body: Optional[dict] = None,
    ) -> CartView:
        data = await self._request(method, self.cart_path(ref) + suffix, body=body, auth=ref.is_user)
        if not isinstance(data, dict):
            raise BackendError("Backend returned no cart", status=200, code="EMPTY_RESPONSE")
        return CartView.model_validate(data)

    @staticmethod
    def cart_path(ref: CartRef) -> str:
        if ref.is_user:
            return "/me/cart"
        return f"/carts/{_segment(ref.cart_id)}"

    # ==================== Cart APIs ====================

    async def create_guest_cart(self) -> str:
        """Create a guest cart and return its id"""
        envelope = await self.request_envelope("POST", "/carts", auth=False)
        data = envelope.get("data") or {}
        meta = envelope.get("meta") or {}
        cart_id = data.get("cartId") or data.get("id") or meta.get("cartId")
        if not cart_id:
            raise BackendError("Failed to create guest cart", code="NO_CART_ID")
        return str(cart_id)

    async def get_cart(self, ref: CartRef) -> CartView:
        """Get a guest cart by id, or the signed-in user's cart"""
        return await self._cart_request("GET", ref)

    async def add_item(self, ref: CartRef, product_id: str, quantity: int) -> CartView:
        return await self._cart_request(
            "POST", ref, "/items", body={"productId": product_id, "quantity": quantity}
        )

    async def update_item(self, ref: CartRef, product_id: str, quantity: int) -> CartView:
        return await self._cart_request(
            "PATCH", ref, f"/items/{_segment(product_id)}", body={"quantity": quantity}
        )

    async def remove_item(self, ref: CartRef, product_id: str) -> CartView:
        return await self._cart_request("DELETE", ref, f"/items/{_segment(product_id)}")

    async def clear_cart(self, ref: CartRef) -> CartView:
        return await self._cart_request("DELETE", ref)

    async def apply_coupon(self, ref: CartRef, code: str) -> CartView:
        """Dedicated apply endpoint; summary sync is the canonical path"""
        return await self._cart_request("POST", ref, "/apply-coupon", body={"code": code})

    async def remove_coupon(self, ref: CartRef) -> CartView:
        return await self._cart_request("DELETE", ref, "/coupon")

    async def sync_summary(self, ref: CartRef, code: Any = ...) -> CartView:
        """
        Summary sync: apply/clear a coupon and get fresh totals in one trip.

        Omit `code` to leave the coupon alone, pass None to clear it.
        """
        body = {"code": code} if code is not ... else None
        return await self._cart_request("PATCH", ref, "/summary", body=body)

    async def merge_guest_cart(self, guest_cart_id: str, strategy: str = "sum") -> Optional[CartView]:
        data = await self._request(
            "POST",
            "/me/cart/merge",
            body={"guestCartId": guest_cart_id, "strategy": strategy},
        )
        # Some deployments answer a merge with an empty body
        return CartView.model_validate(data) if isinstance(data, dict) and data.get("id") else None

    # ==================== Coupon APIs ====================

    async def validate_coupon(self, code: str, params: list[tuple[str, str]]) -> dict:
        data = await self._request(
            "GET", f"/coupons/{_segment(code)}/validate", params=params, auth=False
        )
        return data or {}

    # ==================== Auth APIs ====================

    async def login(self, email: str, password: str) -> dict:
        return await self._request(
            "POST", "/auth/login", body={"email": email, "password": password}, auth=False
        )

    async def register(self, email: str, name: str, password: str) -> dict:
        return await self._request(
            "POST",
            "/auth/register",
            body={"email": email, "name": name, "password": password},
            auth=False,
        )

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def get_me(self) -> dict:
        return await self._request("GET", "/user-details")

    # ==================== Order APIs ====================

    async def create_order(self, payload: dict, guest_cart_id: Optional[str] = None) -> dict:
        if guest_cart_id:
            return await self._request(
                "POST", "/orders", body={"cartId": guest_cart_id, **payload}, auth=False
            )
        return await self._request("POST", "/me/orders", body=payload)

    async def get_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/orders/{_segment(order_id)}")

    async def get_order_by_number(self, number: str) -> dict:
        return await self._request("GET", f"/orders/number/{_segment(number)}")

    async def list_my_orders(self) -> list:
        return await self._request("GET", "/me/orders") or []

    # ==================== Admin coupon APIs ====================

    async def admin_list_coupons(self, params: list[tuple[str, str]]) -> list:
        return await self._request("GET", "/admin/coupons", params=params) or []

    async def admin_coupon_summary(self) -> dict:
        return await self._request("GET", "/admin/coupons/summary") or {}

    async def admin_get_coupon(self, coupon_id: str) -> dict:
        return await self._request("GET", f"/admin/coupons/{_segment(coupon_id)}")

    async def admin_create_coupon(self, payload: dict) -> dict:
        return await self._request("POST", "/admin/coupons", body=payload)

    async def admin_patch_coupon(self, coupon_id: str, patch: dict) -> dict:
        return await self._request("PATCH", f"/admin/coupons/{_segment(coupon_id)}", body=patch)

    async def admin_delete_coupon(self, coupon_id: str) -> None:
        await self._request("DELETE", f"/admin/coupons/{_segment(coupon_id)}")

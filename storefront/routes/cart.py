"""Cart API routes"""

from fastapi import APIRouter, Depends
from pydantic import Field

from ..core.session import StorefrontSession
from ..models.base import WireModel
from ..services.errors import Outcome
from .common import get_session, respond

router = APIRouter(prefix="/api/cart", tags=["Cart"])


class AddItemRequest(WireModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateItemRequest(WireModel):
    quantity: int


class ApplyCouponRequest(WireModel):
    code: str


@router.get("")
async def get_cart(session: StorefrontSession = Depends(get_session)):
    """Authoritative cart for the session"""
    outcome = await session.engine.refresh()
    return respond(session, outcome)


@router.post("/items")
async def add_item(request: AddItemRequest, session: StorefrontSession = Depends(get_session)):
    outcome = await session.engine.add_item(request.product_id, request.quantity)
    return respond(session, outcome)


@router.patch("/items/{product_id}")
async def update_item(
    product_id: str,
    request: UpdateItemRequest,
    session: StorefrontSession = Depends(get_session),
):
    """Set a line's quantity; zero or less removes it"""
    outcome = await session.engine.update_item(product_id, request.quantity)
    return respond(session, outcome)


@router.delete("/items/{product_id}")
async def remove_item(product_id: str, session: StorefrontSession = Depends(get_session)):
    outcome = await session.engine.remove_item(product_id)
    return respond(session, outcome)


@router.delete("")
async def clear_cart(session: StorefrontSession = Depends(get_session)):
    outcome = await session.engine.clear()
    return respond(session, outcome)


# ==================== Coupons ====================

@router.post("/coupon")
async def apply_coupon(request: ApplyCouponRequest, session: StorefrontSession = Depends(get_session)):
    outcome = await session.engine.apply_coupon(request.code)
    return respond(session, outcome)


@router.delete("/coupon")
async def remove_coupon(session: StorefrontSession = Depends(get_session)):
    outcome = await session.engine.remove_coupon()
    return respond(session, outcome)


@router.get("/id")
async def get_effective_cart_id(session: StorefrontSession = Depends(get_session)):
    """Id of the cart the session currently writes to"""
    cart_id = await session.engine.resolve_effective_cart_id()
    return respond(session, Outcome.success({"cartId": cart_id}))

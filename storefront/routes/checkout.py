"""Checkout and order routes"""

from fastapi import APIRouter, Depends

from ..core.session import StorefrontSession
from ..models.order import CheckoutDetails
from .common import get_session, respond

router = APIRouter(prefix="/api", tags=["Checkout"])


@router.post("/checkout")
async def checkout(details: CheckoutDetails, session: StorefrontSession = Depends(get_session)):
    """
    Place an order for the session's cart.

    A 409 response means stock ran short; the cart has already been cut
    down to what is available and `error.adjustments` lists the new
    quantities.
    """
    outcome = await session.checkout.place_order(details)
    return respond(session, outcome, status_code=201)


@router.get("/orders")
async def list_orders(session: StorefrontSession = Depends(get_session)):
    outcome = await session.checkout.list_my_orders()
    return respond(session, outcome)


@router.get("/orders/number/{number}")
async def get_order_by_number(number: str, session: StorefrontSession = Depends(get_session)):
    outcome = await session.checkout.get_order_by_number(number)
    return respond(session, outcome)


@router.get("/orders/{order_id}")
async def get_order(order_id: str, session: StorefrontSession = Depends(get_session)):
    outcome = await session.checkout.get_order(order_id)
    return respond(session, outcome)

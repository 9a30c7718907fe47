"""Coupon preview routes"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.session import StorefrontSession
from .common import get_session, respond

router = APIRouter(prefix="/api/coupons", tags=["Coupons"])


@router.get("/{code}/preview")
async def preview_coupon(
    code: str,
    product_ids: Optional[list[str]] = Query(None, alias="productIds"),
    category_ids: Optional[list[str]] = Query(None, alias="categoryIds"),
    subtotal: Optional[Decimal] = Query(None),
    session: StorefrontSession = Depends(get_session),
):
    """
    Estimate a coupon's effect without touching the cart.

    Query parameters override the eligibility inputs otherwise taken from
    the session's cart and signed-in user.
    """
    context = session.engine.preview_context()
    overrides = {}
    if product_ids:
        overrides["product_ids"] = product_ids
    if category_ids:
        overrides["category_ids"] = category_ids
    if subtotal is not None:
        overrides["subtotal"] = subtotal
    if overrides:
        context = context.model_copy(update=overrides)

    outcome = await session.engine.preview_coupon(code, context)
    return respond(session, outcome)


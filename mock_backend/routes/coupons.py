"""Coupon validation and admin coupon management"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..database.coupons import coupon_db
from ..errors import ApiError, envelope, not_found
from ..models.coupon import Coupon, CouponWrite
from ..models.user import User
from ..security import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/coupons", tags=["Coupons"])
admin_router = APIRouter(prefix="/api/admin/coupons", tags=["Admin coupons"])

TARGET_FIELDS = (
    ("productIds", "product_ids"),
    ("categoryIds", "category_ids"),
    ("customerIds", "customer_ids"),
)


@router.get("/{code}/validate")
async def validate_coupon(
    code: str,
    customer_id: Optional[str] = Query(None, alias="customerId"),
    product_ids: list[str] = Query([], alias="productIds"),
    category_ids: list[str] = Query([], alias="categoryIds"),
    subtotal: Optional[Decimal] = Query(None),
):
    """Read-only eligibility check; never touches a cart"""
    coupon = coupon_db.get_by_code(code)
    if not coupon:
        return envelope({"valid": False, "code": code.upper(), "message": "Coupon not found"})

    check = coupon_db.evaluate(
        coupon,
        float(subtotal or 0),
        product_ids,
        category_ids=category_ids,
        customer_id=customer_id,
    )
    return envelope({
        "valid": check.valid,
        "code": coupon.code,
        "discountType": coupon.discount_type.value,
        "discount": coupon.discount,
        "discountAmount": check.discount_amount if check.valid else None,
        "message": check.message,
    })


# ==================== Admin APIs ====================

def _targeting_values(write: CouponWrite) -> dict:
    """
    Targeting lists to store.

    At most one targeting list may be non-empty, and `global` excludes all
    of them. A payload that names any target replaces the stored target
    entirely; one that names none leaves it alone.
    """
    populated = [
        wire for wire, attr in TARGET_FIELDS if getattr(write, attr)
    ]
    if write.global_:
        populated.append("global")
    if len(populated) > 1:
        raise ApiError(
            400,
            "VALIDATION_ERROR",
            "A coupon can only have one target",
            {name: "conflicts with another target" for name in populated},
        )

    touched = write.global_ is not None or any(
        getattr(write, attr) is not None for _, attr in TARGET_FIELDS
    )
    if not touched:
        return {}
    return {attr: list(getattr(write, attr) or []) for _, attr in TARGET_FIELDS}


def _check_code_free(code: str, coupon_id: Optional[str] = None) -> None:
    existing = coupon_db.get_by_code(code)
    if existing and existing.id != coupon_id:
        raise ApiError(409, "CONFLICT", "Coupon code already exists", {"code": "taken"})


def _get(coupon_id: str) -> Coupon:
    coupon = coupon_db.get_coupon(coupon_id)
    if not coupon:
        raise not_found("Coupon")
    return coupon


@admin_router.get("")
async def list_coupons(
    search: Optional[str] = Query(None),
    sort: list[str] = Query([]),
    limit: Optional[int] = Query(None, ge=1),
    admin: User = Depends(require_admin),
):
    coupons = coupon_db.list_coupons(search=search, sort=sort, limit=limit)
    return envelope([c.to_wire() for c in coupons], meta={"total": len(coupons)})


@admin_router.get("/summary")
async def coupon_summary(admin: User = Depends(require_admin)):
    return envelope(coupon_db.summary())


@admin_router.get("/{coupon_id}")
async def get_coupon(coupon_id: str, admin: User = Depends(require_admin)):
    return envelope(_get(coupon_id).to_wire())


@admin_router.post("", status_code=201)
async def create_coupon(write: CouponWrite, admin: User = Depends(require_admin)):
    missing = {
        name: "required"
        for name, value in (("code", write.code), ("discountType", write.discount_type), ("discount", write.discount))
        if value in (None, "")
    }
    if missing:
        raise ApiError(400, "VALIDATION_ERROR", "Missing required fields", missing)

    code = write.code.strip().upper()
    _check_code_free(code)
    values = {
        "code": code,
        "discount_type": write.discount_type,
        "discount": write.discount,
        "expiry_date": write.expiry_date,
        "max_uses": write.max_uses,
        "active": True if write.active is None else write.active,
        **_targeting_values(write),
    }
    coupon = coupon_db.create_coupon(values)
    logger.info(f"Admin {admin.email} created coupon {coupon.code}")
    return envelope(coupon.to_wire(), status_code=201)


@admin_router.patch("/{coupon_id}")
async def update_coupon(coupon_id: str, write: CouponWrite, admin: User = Depends(require_admin)):
    _get(coupon_id)
    values = {
        attr: getattr(write, attr)
        for attr in ("discount_type", "discount", "expiry_date", "max_uses", "active")
        if attr in write.model_fields_set
    }
    if write.code is not None:
        code = write.code.strip().upper()
        _check_code_free(code, coupon_id)
        values["code"] = code
    values.update(_targeting_values(write))
    return envelope(coupon_db.update_coupon(coupon_id, values).to_wire())


@admin_router.delete("/{coupon_id}")
async def delete_coupon(coupon_id: str, admin: User = Depends(require_admin)):
    if not coupon_db.delete_coupon(coupon_id):
        raise not_found("Coupon")
    return envelope(None)

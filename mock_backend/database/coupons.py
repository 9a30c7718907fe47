"""Coupon storage and evaluation for the mock backend"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..models.coupon import Coupon, DiscountType
from .products import product_db


@dataclass
class CouponCheck:
    """Result of evaluating a coupon against a basket"""
    discount_amount: float = 0.0
    error_code: Optional[str] = None
    message: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error_code is None


def _coupon(code: str, discount_type: DiscountType, discount: float, **kwargs) -> Coupon:
    now = datetime.now(timezone.utc)
    return Coupon(
        id=str(uuid.uuid4()),
        code=code,
        discount_type=discount_type,
        discount=discount,
        created_at=now,
        updated_at=now,
        **kwargs,
    )


def seed_coupons() -> list[Coupon]:
    return [
        _coupon("SAVE10", DiscountType.PERCENT, 10),
        _coupon("FIVEOFF", DiscountType.FIXED, 5),
        _coupon("AUDIO20", DiscountType.PERCENT, 20, category_ids=["cat-audio"]),
        _coupon("MIXER50", DiscountType.FIXED, 50, product_ids=["prod-005"]),
        _coupon("OLDNEWS", DiscountType.PERCENT, 15, expiry_date="2020-01-01"),
        _coupon("PAUSED", DiscountType.PERCENT, 5, active=False),
    ]


class CouponDatabase:
    """In-memory coupon storage"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.coupons: dict[str, Coupon] = {c.id: c for c in seed_coupons()}

    # ==================== Lookup ====================

    def get_coupon(self, coupon_id: str) -> Optional[Coupon]:
        return self.coupons.get(coupon_id)

    def get_by_code(self, code: str) -> Optional[Coupon]:
        code = (code or "").strip().upper()
        return next((c for c in self.coupons.values() if c.code == code), None)

    def list_coupons(
        self,
        search: Optional[str] = None,
        sort: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> list[Coupon]:
        results = list(self.coupons.values())
        if search:
            needle = search.strip().upper()
            results = [c for c in results if needle in c.code]

        # "field,direction" pairs, applied last-first so the first one wins
        for entry in reversed(sort or []):
            field_name, _, direction = entry.partition(",")
            attr = {"createdAt": "created_at", "code": "code", "discount": "discount"}.get(field_name)
            if attr:
                results.sort(key=lambda c: getattr(c, attr), reverse=direction.lower() == "desc")

        return results[:limit] if limit else results

    def summary(self) -> dict:
        coupons = list(self.coupons.values())
        return {
            "total": len(coupons),
            "active": sum(1 for c in coupons if c.active and not c.expired),
            "expired": sum(1 for c in coupons if c.expired),
        }

    # ==================== Admin ====================

    def create_coupon(self, values: dict) -> Coupon:
        coupon = _coupon(**values)
        self.coupons[coupon.id] = coupon
        return coupon

    def update_coupon(self, coupon_id: str, values: dict) -> Optional[Coupon]:
        coupon = self.coupons.get(coupon_id)
        if not coupon:
            return None
        updated = coupon.model_copy(update={**values, "updated_at": datetime.now(timezone.utc)})
        self.coupons[coupon_id] = updated
        return updated

    def delete_coupon(self, coupon_id: str) -> bool:
        return self.coupons.pop(coupon_id, None) is not None

    def record_use(self, code: str) -> None:
        coupon = self.get_by_code(code)
        if coupon:
            coupon.used_count += 1

    # ==================== Evaluation ====================

    def evaluate(
        self,
        coupon: Coupon,
        subtotal: float,
        product_ids: list[str],
        category_ids: Optional[list[str]] = None,
        customer_id: Optional[str] = None,
        line_totals: Optional[dict[str, float]] = None,
    ) -> CouponCheck:
        """
        Work out the discount a coupon gives.

        `line_totals` (product id -> line total) narrows the discount base to
        the targeted lines; without it the whole subtotal is the base.
        """
        if not coupon.active:
            return CouponCheck(error_code="COUPON_INACTIVE", message="Coupon is not active")
        if coupon.expired:
            return CouponCheck(error_code="COUPON_EXPIRED", message="Coupon has expired")
        if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
            return CouponCheck(error_code="COUPON_EXHAUSTED", message="Coupon usage limit reached")
        if coupon.customer_ids and customer_id not in coupon.customer_ids:
            return CouponCheck(error_code="COUPON_NOT_ELIGIBLE", message="Coupon is not available for this account")

        base = subtotal
        if coupon.product_ids or coupon.category_ids:
            eligible = [pid for pid in product_ids if self._targets(coupon, pid, category_ids)]
            if not eligible:
                return CouponCheck(error_code="COUPON_NOT_ELIGIBLE", message="No items in the cart qualify for this coupon")
            if line_totals is not None:
                base = sum(line_totals.get(pid, 0.0) for pid in eligible)

        if coupon.discount_type == DiscountType.PERCENT:
            amount = base * coupon.discount / 100
        else:
            amount = min(coupon.discount, base)
        return CouponCheck(discount_amount=round(max(amount, 0.0), 2))

    @staticmethod
    def _targets(coupon: Coupon, product_id: str, category_ids: Optional[list[str]]) -> bool:
        if coupon.product_ids:
            return product_id in coupon.product_ids
        product = product_db.get_product(product_id)
        categories = set(category_ids or [])
        if product:
            categories.add(product.category_id)
        return bool(categories & set(coupon.category_ids))


# Singleton instance
coupon_db = CouponDatabase()

"""Admin console coupon management"""

import logging
from typing import Optional

from ..models.coupon import AdminCoupon, CouponDraft, CouponSummary
from .backend_client import BackendClient
from .errors import Outcome, StorefrontError

logger = logging.getLogger(__name__)


class AdminCouponClient:
    """
    Coupon CRUD for administrators.

    Payloads come from `CouponDraft`, whose target is a single variant, so
    a request never carries more than one targeting field. Requests are sent
    once; a failing payload is reported, not reshaped and retried.
    """

    def __init__(self, client: BackendClient):
        self.client = client

    async def list_coupons(
        self,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        sort: Optional[list[tuple[str, str]]] = None,
    ) -> Outcome[list[AdminCoupon]]:
        params: list[tuple[str, str]] = []
        if search:
            params.append(("search", search))
        if limit is not None:
            params.append(("limit", str(limit)))
        for field_name, direction in sort or []:
            params.append(("sort", f"{field_name},{direction}"))
        try:
            data = await self.client.admin_list_coupons(params)
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success([AdminCoupon.model_validate(c) for c in data])

    async def summary(self) -> Outcome[CouponSummary]:
        try:
            data = await self.client.admin_coupon_summary()
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success(CouponSummary.model_validate(data))

    async def get_coupon(self, coupon_id: str) -> Outcome[AdminCoupon]:
        try:
            data = await self.client.admin_get_coupon(coupon_id)
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success(AdminCoupon.model_validate(data))

    async def create_coupon(self, draft: CouponDraft) -> Outcome[AdminCoupon]:
        try:
            data = await self.client.admin_create_coupon(draft.to_wire())
        except StorefrontError as e:
            logger.warning(f"Creating coupon {draft.code} failed: {e}")
            return Outcome.failure(e)
        coupon = AdminCoupon.model_validate(data)
        logger.info(f"Created coupon {coupon.code} ({coupon.id})")
        return Outcome.success(coupon)

    async def update_coupon(self, coupon_id: str, draft: CouponDraft) -> Outcome[AdminCoupon]:
        """
        Replace a coupon's settings.

        The payload carries only the draft's own targeting field; the backend
        replaces the stored target with it as a whole.
        """
        try:
            data = await self.client.admin_patch_coupon(coupon_id, draft.to_wire())
        except StorefrontError as e:
            logger.warning(f"Updating coupon {coupon_id} failed: {e}")
            return Outcome.failure(e)
        return Outcome.success(AdminCoupon.model_validate(data))

    async def set_active(self, coupon_id: str, active: bool) -> Outcome[AdminCoupon]:
        try:
            data = await self.client.admin_patch_coupon(coupon_id, {"active": active})
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success(AdminCoupon.model_validate(data))

    async def delete_coupon(self, coupon_id: str) -> Outcome[None]:
        try:
            await self.client.admin_delete_coupon(coupon_id)
        except StorefrontError as e:
            return Outcome.failure(e)
        return Outcome.success()

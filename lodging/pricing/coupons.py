from datetime import datetime
from typing import Optional

from ..entities import Coupon, CouponType
from ..repositories.storage import BookingStorage
from .dates import Clock, utc_now


def is_redeemable(coupon: Coupon, nights: int, now: datetime) -> bool:
    if not coupon.active:
        return False
    if now < coupon.valid_from or now > coupon.valid_until:
        return False
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return False
    if coupon.minimum_stay is not None and nights < coupon.minimum_stay:
        return False
    return True


def coupon_discount(coupon: Coupon, subtotal: float) -> float:
    if coupon.type == CouponType.PERCENTAGE:
        return subtotal * coupon.value / 100
    return coupon.value


class CouponValidator:
    """Looks a code up and decides whether it can be redeemed right now.

    An unknown, expired, exhausted or too-short-stay coupon is None, not an
    error; the caller decides whether to tell the guest. used_count is never
    touched here.
    """

    def __init__(self, storage: BookingStorage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock

    def validate_coupon(self, code: str, nights: int) -> Optional[Coupon]:
        code = (code or "").strip().upper()
        if not code:
            return None
        coupon = self.storage.get_coupon_by_code(code)
        if coupon is None:
            return None
        if not is_redeemable(coupon, nights, self.clock()):
            return None
        return coupon

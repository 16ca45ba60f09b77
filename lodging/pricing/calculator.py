from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..entities import Coupon, PriceBreakdown, RateResolution, Settings, Site
from ..errors import SiteNotFoundError
from ..repositories.storage import BookingStorage
from .coupons import CouponValidator, coupon_discount
from .dates import Clock, DateLike, as_date, count_nights, utc_now
from .rules import resolve_rate

CENT = Decimal("0.01")


def round2(x: float) -> float:
    """Round half-up to cents."""
    return float(Decimal(repr(x)).quantize(CENT, rounding=ROUND_HALF_UP))


def build_breakdown(
    nights: int,
    rate: RateResolution,
    settings: Settings,
    coupon: Optional[Coupon] = None,
) -> PriceBreakdown:
    subtotal = rate.price_per_night * nights
    discount = subtotal * rate.cumulative_discount_percent / 100
    reasons = list(rate.applied_rule_names)

    if coupon is not None:
        discount += coupon_discount(coupon, subtotal)
        reasons.append(f"Coupon {coupon.code}")

    # stacked rules + coupon may exceed the stay; never price below zero
    if discount > subtotal:
        discount = subtotal

    after_discount = subtotal - discount
    tax = after_discount * settings.tax_rate / 100
    total = after_discount + tax
    deposit = round2(total * settings.deposit_percentage / 100)
    remaining = round2(total - deposit)

    return PriceBreakdown(
        nights=nights,
        price_per_night=rate.price_per_night,
        subtotal=subtotal,
        discount=discount,
        discount_reason=", ".join(reasons),
        tax=tax,
        total=total,
        deposit_amount=deposit,
        remaining_balance=remaining,
        coupon_code=coupon.code if coupon is not None else None,
    )


class PriceCalculator:
    def __init__(self, storage: BookingStorage, clock: Clock = utc_now):
        self.storage = storage
        self.coupons = CouponValidator(storage, clock)

    def calculate_price(
        self,
        site: Site,
        check_in: DateLike,
        check_out: DateLike,
        coupon_code: Optional[str] = None,
    ) -> PriceBreakdown:
        nights = count_nights(check_in, check_out)
        rules = self.storage.get_pricing_rules(site.id)
        rate = resolve_rate(site, as_date(check_in), nights, rules)

        coupon = None
        if coupon_code:
            coupon = self.coupons.validate_coupon(coupon_code, nights)

        return build_breakdown(nights, rate, self.storage.get_settings(), coupon)

    def calculate_booking_price(
        self,
        site_id: str,
        check_in: DateLike,
        check_out: DateLike,
        coupon_code: Optional[str] = None,
    ) -> PriceBreakdown:
        count_nights(check_in, check_out)  # fail before any storage call
        site = self.storage.get_site(site_id)
        if site is None:
            raise SiteNotFoundError(site_id)
        return self.calculate_price(site, check_in, check_out, coupon_code)

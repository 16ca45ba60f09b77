import logging
from datetime import timedelta
from typing import List, Optional

from ..entities import (
    Booking,
    BookingPricing,
    BookingStatus,
    GuestInfo,
    PaymentStatus,
    PriceBreakdown,
    RVDetails,
    Site,
    SiteStatus,
)
from ..errors import (
    BookingNotFoundError,
    GuestLimitError,
    InvalidTransitionError,
    SiteNotFoundError,
    SiteUnavailableError,
)
from ..pricing.availability import AvailabilityChecker
from ..pricing.calculator import PriceCalculator
from ..pricing.dates import Clock, DateLike, as_date, count_nights, utc_now
from ..repositories.storage import BookingStorage
from ..utils.pii import mask_email, mask_phone

logger = logging.getLogger(__name__)


class BookingService:
    """
    Entry points used by the API layer.

    check_availability / calculate_booking_price are pure reads. The rest
    drive a booking from request to deposit and staff decision; pricing
    itself never writes.
    """

    def __init__(self, storage: BookingStorage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock
        self.availability = AvailabilityChecker(storage)
        self.calculator = PriceCalculator(storage, clock)

    # -------- core entry points --------

    def check_availability(self, site_id: str, check_in: DateLike, check_out: DateLike) -> bool:
        return self.availability.is_available(site_id, check_in, check_out)

    def calculate_booking_price(
        self,
        site_id: str,
        check_in: DateLike,
        check_out: DateLike,
        coupon_code: Optional[str] = None,
    ) -> PriceBreakdown:
        return self.calculator.calculate_booking_price(site_id, check_in, check_out, coupon_code)

    # -------- catalog --------

    def list_sites(self, active_only: bool = True) -> List[Site]:
        return self.storage.list_sites(active_only=active_only)

    def get_site_by_number(self, site_number: int) -> Site:
        site = self.storage.get_site_by_number(site_number)
        if site is None:
            raise SiteNotFoundError(f"#{site_number}")
        return site

    # -------- booking lifecycle --------

    def request_booking(
        self,
        site_id: str,
        check_in: DateLike,
        check_out: DateLike,
        guest: GuestInfo,
        number_of_guests: int = 1,
        coupon_code: Optional[str] = None,
        rv_details: Optional[RVDetails] = None,
        special_requests: Optional[str] = None,
    ) -> Booking:
        check_in, check_out = as_date(check_in), as_date(check_out)
        nights = count_nights(check_in, check_out)

        site = self.storage.get_site(site_id)
        if site is None:
            raise SiteNotFoundError(site_id)
        if site.status != SiteStatus.ACTIVE:
            raise SiteUnavailableError(f"Site {site_id} is {site.status.value}")

        settings = self.storage.get_settings()
        if settings.maintenance_mode:
            raise SiteUnavailableError("Bookings are paused for maintenance")

        earliest = self.clock().date() + timedelta(days=settings.booking_lead_time)
        if check_in < earliest:
            raise SiteUnavailableError(
                f"Check-in must be on or after {earliest.isoformat()}"
            )
        if number_of_guests < 1 or number_of_guests > site.max_occupancy:
            raise GuestLimitError(
                f"Site {site_id} allows 1-{site.max_occupancy} guests, got {number_of_guests}"
            )

        if not self.availability.is_available(site_id, check_in, check_out):
            raise SiteUnavailableError("Site is not available for the selected dates")

        price = self.calculator.calculate_price(site, check_in, check_out, coupon_code)
        if coupon_code and price.coupon_code is None:
            logger.info("coupon %s not applied to site %s", coupon_code.upper(), site_id)

        booking = Booking(
            site_id=site.id,
            site_name=site.name,
            guest=guest,
            check_in=check_in,
            check_out=check_out,
            number_of_nights=nights,
            number_of_guests=number_of_guests,
            rv_details=rv_details,
            pricing=BookingPricing(**price.model_dump(), deposit_paid=False),
            coupon_code=price.coupon_code,
            special_requests=special_requests,
        )

        booking_id = self.storage.create_booking_if_available(booking)
        if booking_id is None:
            raise SiteUnavailableError("Site is not available for the selected dates")
        if price.coupon_code:
            self.storage.increment_coupon_usage(price.coupon_code)

        logger.info(
            "booking %s requested: site=%s %s..%s guest=%s / %s total=%.2f",
            booking_id,
            site_id,
            check_in,
            check_out,
            mask_email(guest.email),
            mask_phone(guest.phone),
            price.total,
        )
        return booking.model_copy(update={"id": booking_id})

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.storage.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    def record_deposit_payment(self, booking_id: str, payment_reference: str) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.status in (BookingStatus.REJECTED, BookingStatus.CANCELLED):
            raise InvalidTransitionError(
                f"Cannot record a deposit on a {booking.status.value} booking"
            )
        if booking.payment_status == PaymentStatus.DEPOSIT_PAID:
            return booking  # idempotent
        if booking.payment_status != PaymentStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot record a deposit on a {booking.payment_status.value} booking"
            )

        updated = booking.model_copy(
            update={
                "payment_status": PaymentStatus.DEPOSIT_PAID,
                "payment_reference": payment_reference,
                "pricing": booking.pricing.model_copy(update={"deposit_paid": True}),
            }
        )
        self.storage.update_booking(updated)
        logger.info("booking %s deposit paid (ref %s)", booking_id, payment_reference)
        return updated

    def approve_booking(self, booking_id: str, approved_by: str) -> Booking:
        booking = self._pending(booking_id)
        updated = booking.model_copy(
            update={
                "status": BookingStatus.APPROVED,
                "approved_at": self.clock(),
                "approved_by": approved_by,
            }
        )
        # approval starts blocking the dates, so re-check under the site lock
        if not self.storage.update_booking(updated, require_available=True):
            raise SiteUnavailableError(
                f"Booking {booking_id} overlaps an approved or confirmed booking"
            )
        logger.info("booking %s approved by %s", booking_id, approved_by)
        return updated

    def reject_booking(self, booking_id: str) -> Booking:
        booking = self._pending(booking_id)
        updated = booking.model_copy(update={"status": BookingStatus.REJECTED})
        self.storage.update_booking(updated)
        logger.info("booking %s rejected", booking_id)
        return updated

    def _pending(self, booking_id: str) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransitionError(
                f"Booking {booking_id} is {booking.status.value}, expected pending"
            )
        return booking

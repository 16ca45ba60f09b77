from typing import List, Optional, Protocol

from ..entities import Booking, Coupon, PricingRule, Settings, Site


class BookingStorage(Protocol):
    """What the reservation core needs from the database.

    Implementations return typed entities and raise UpstreamStorageError
    on driver failures.
    """

    def get_site(self, site_id: str) -> Optional[Site]: ...

    def list_sites(self, active_only: bool = True) -> List[Site]:
        """Catalog ordered by site number."""
        ...

    def get_site_by_number(self, site_number: int) -> Optional[Site]: ...

    def get_bookings_for_site(self, site_id: str) -> List[Booking]:
        """Only approved/confirmed bookings."""
        ...

    def get_pricing_rules(self, site_id: str) -> List[PricingRule]:
        """Active rules for the site and for "all", highest priority first."""
        ...

    def get_coupon_by_code(self, code: str) -> Optional[Coupon]:
        """Active coupon with this (upper-case) code."""
        ...

    def get_settings(self) -> Settings: ...

    def create_booking(self, booking: Booking) -> str: ...

    def create_booking_if_available(self, booking: Booking) -> Optional[str]:
        """Insert unless an approved/confirmed booking overlaps; None on conflict."""
        ...

    def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    def update_booking(self, booking: Booking, require_available: bool = False) -> bool:
        """Persist status/payment fields; False if require_available and dates clash."""
        ...

    def increment_coupon_usage(self, code: str) -> None: ...

# lodging/pricing/availability.py
from datetime import date
from typing import List

from ..entities import Booking, BookingStatus
from ..repositories.storage import BookingStorage
from .dates import DateLike, as_date, count_nights

# pending / rejected / cancelled / completed never hold the dates
BLOCKING_STATUSES = frozenset({BookingStatus.APPROVED, BookingStatus.CONFIRMED})


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open [start, end): a check-out and a check-in on the same day do not clash."""
    return a_start < b_end and a_end > b_start


def overlapping(bookings: List[Booking], check_in: date, check_out: date) -> List[Booking]:
    return [
        b
        for b in bookings
        if b.status in BLOCKING_STATUSES
        and ranges_overlap(b.check_in, b.check_out, check_in, check_out)
    ]


class AvailabilityChecker:
    def __init__(self, storage: BookingStorage):
        self.storage = storage

    def conflicts(self, site_id: str, check_in: DateLike, check_out: DateLike) -> List[Booking]:
        count_nights(check_in, check_out)
        bookings = self.storage.get_bookings_for_site(site_id)
        return overlapping(bookings, as_date(check_in), as_date(check_out))

    def is_available(self, site_id: str, check_in: DateLike, check_out: DateLike) -> bool:
        return not self.conflicts(site_id, check_in, check_out)

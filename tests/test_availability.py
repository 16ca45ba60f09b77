from datetime import date, datetime

import pytest

from lodging.errors import InvalidRangeError, UpstreamStorageError
from lodging.pricing.availability import AvailabilityChecker, ranges_overlap


def test_touching_ranges_do_not_overlap():
    assert not ranges_overlap(date(2025, 7, 1), date(2025, 7, 4), date(2025, 7, 4), date(2025, 7, 6))
    assert not ranges_overlap(date(2025, 7, 4), date(2025, 7, 6), date(2025, 7, 1), date(2025, 7, 4))


def test_shared_night_overlaps():
    assert ranges_overlap(date(2025, 7, 1), date(2025, 7, 4), date(2025, 7, 3), date(2025, 7, 5))
    assert ranges_overlap(date(2025, 7, 1), date(2025, 7, 10), date(2025, 7, 3), date(2025, 7, 5))


def test_confirmed_booking_blocks_overlapping_request(seed, storage):
    seed.site()
    seed.booking(date(2025, 7, 1), date(2025, 7, 4), status="confirmed")
    checker = AvailabilityChecker(storage)

    assert checker.is_available("site-1", date(2025, 7, 3), date(2025, 7, 5)) is False
    assert checker.is_available("site-1", date(2025, 6, 28), date(2025, 7, 2)) is False


def test_approved_booking_blocks(seed, storage):
    seed.site()
    seed.booking(date(2025, 7, 1), date(2025, 7, 4), status="approved")
    assert AvailabilityChecker(storage).is_available("site-1", date(2025, 7, 2), date(2025, 7, 3)) is False


def test_check_in_on_previous_check_out_is_free(seed, storage):
    seed.site()
    seed.booking(date(2025, 7, 1), date(2025, 7, 4))
    checker = AvailabilityChecker(storage)

    assert checker.is_available("site-1", date(2025, 7, 4), date(2025, 7, 6)) is True
    assert checker.is_available("site-1", date(2025, 6, 28), date(2025, 7, 1)) is True


@pytest.mark.parametrize("status", ["pending", "rejected", "cancelled", "completed"])
def test_non_blocking_statuses_never_matter(seed, storage, status):
    seed.site()
    seed.booking(date(2025, 7, 1), date(2025, 7, 4), status=status)
    assert AvailabilityChecker(storage).is_available("site-1", date(2025, 7, 1), date(2025, 7, 4)) is True


def test_other_sites_bookings_ignored(seed, storage):
    seed.site()
    seed.site(id="site-2", name="Mountain View Haven")
    seed.booking(date(2025, 7, 1), date(2025, 7, 4), site_id="site-2")
    assert AvailabilityChecker(storage).is_available("site-1", date(2025, 7, 1), date(2025, 7, 4)) is True


def test_time_of_day_is_ignored(seed, storage):
    seed.site()
    seed.booking(date(2025, 7, 1), date(2025, 7, 4))
    checker = AvailabilityChecker(storage)
    assert checker.is_available("site-1", datetime(2025, 7, 4, 15, 0), datetime(2025, 7, 5, 11, 0)) is True


@pytest.mark.parametrize(
    "check_in,check_out",
    [(date(2025, 7, 4), date(2025, 7, 4)), (date(2025, 7, 5), date(2025, 7, 4))],
)
def test_non_positive_range_rejected(storage, check_in, check_out):
    with pytest.raises(InvalidRangeError):
        AvailabilityChecker(storage).is_available("site-1", check_in, check_out)


class BrokenStorage:
    def get_bookings_for_site(self, site_id):
        raise UpstreamStorageError("get_bookings_for_site")


def test_storage_failure_is_not_treated_as_available():
    with pytest.raises(UpstreamStorageError):
        AvailabilityChecker(BrokenStorage()).is_available("site-1", date(2025, 7, 1), date(2025, 7, 2))

from datetime import date

import pytest
from sqlmodel import Session

from lodging.entities import BookingStatus, GuestInfo, PaymentStatus, RVDetails
from lodging.errors import (
    BookingNotFoundError,
    GuestLimitError,
    InvalidRangeError,
    InvalidTransitionError,
    SiteNotFoundError,
    SiteUnavailableError,
)
from lodging.models import CouponRecord
from lodging.services.booking_service import BookingService

GUEST = GuestInfo(first_name="Ada", last_name="Lovelace", email="ada@example.com", phone="423-555-0123")


@pytest.fixture
def service(storage, clock):
    return BookingService(storage, clock)


@pytest.fixture
def site(seed):
    seed.settings(tax_rate=9.25, deposit_percentage=50)
    return seed.site(base_price=75.0, max_occupancy=6)


def _request(service, check_in=date(2025, 7, 1), check_out=date(2025, 7, 4), **kw):
    kw.setdefault("guest", GUEST)
    return service.request_booking("site-1", check_in, check_out, **kw)


def test_entry_points(site, service, stay):
    assert service.check_availability("site-1", *stay) is True
    assert service.calculate_booking_price("site-1", *stay).subtotal == 225.0


def test_request_creates_pending_booking_with_snapshot(site, service):
    booking = _request(service, number_of_guests=2, special_requests="Late arrival",
                       rv_details=RVDetails(make="Airstream", length=28))

    assert booking.id.startswith("bk_")
    assert booking.status == BookingStatus.PENDING
    assert booking.payment_status == PaymentStatus.PENDING
    assert booking.number_of_nights == 3
    assert booking.site_name == "Riverside Retreat"
    assert booking.pricing.total == pytest.approx(245.81, abs=0.01)
    assert booking.pricing.deposit_paid is False

    stored = service.get_booking(booking.id)
    assert stored.pricing == booking.pricing
    assert stored.guest == GUEST
    assert stored.rv_details.make == "Airstream"
    assert stored.special_requests == "Late arrival"


def test_applied_coupon_counts_a_use(site, seed, engine, service):
    seed.coupon("WELCOME2025", value=10, minimum_stay=2, usage_limit=100, used_count=7)
    booking = _request(service, coupon_code="welcome2025")

    assert booking.coupon_code == "WELCOME2025"
    assert booking.pricing.discount == pytest.approx(22.5)
    with Session(engine) as s:
        assert s.get(CouponRecord, "coupon-1").used_count == 8


def test_rejected_coupon_is_not_counted(site, seed, engine, service):
    seed.coupon("LONGSTAY", value=20, minimum_stay=14, used_count=0)
    booking = _request(service, coupon_code="LONGSTAY")

    assert booking.coupon_code is None
    with Session(engine) as s:
        assert s.get(CouponRecord, "coupon-1").used_count == 0


def test_taken_dates_refused(site, seed, service):
    seed.booking(date(2025, 7, 2), date(2025, 7, 5), status="confirmed")
    with pytest.raises(SiteUnavailableError):
        _request(service)


def test_pending_requests_do_not_block_each_other(site, service):
    first = _request(service)
    second = _request(service)
    assert first.id != second.id


def test_unknown_site(service):
    with pytest.raises(SiteNotFoundError):
        _request(service)


@pytest.mark.parametrize("status", ["inactive", "maintenance"])
def test_site_must_be_active(seed, service, status):
    seed.site(status=status)
    with pytest.raises(SiteUnavailableError):
        _request(service)


def test_maintenance_mode_pauses_bookings(seed, service):
    seed.settings(maintenance_mode=True)
    seed.site()
    with pytest.raises(SiteUnavailableError):
        _request(service)


def test_lead_time(seed, service):
    seed.settings(booking_lead_time=1)
    seed.site()
    with pytest.raises(SiteUnavailableError):
        _request(service, date(2025, 6, 15), date(2025, 6, 17))
    assert _request(service, date(2025, 6, 16), date(2025, 6, 17)).id


@pytest.mark.parametrize("guests", [0, 7])
def test_guest_count_within_occupancy(site, service, guests):
    with pytest.raises(GuestLimitError):
        _request(service, number_of_guests=guests)


def test_bad_range(site, service):
    with pytest.raises(InvalidRangeError):
        _request(service, date(2025, 7, 4), date(2025, 7, 1))


def test_approve_then_dates_are_taken(site, service):
    booking = _request(service)
    approved = service.approve_booking(booking.id, approved_by="owner@riverlife")

    assert approved.status == BookingStatus.APPROVED
    assert approved.approved_by == "owner@riverlife"
    assert service.get_booking(booking.id).approved_at is not None
    assert service.check_availability("site-1", date(2025, 7, 1), date(2025, 7, 4)) is False


def test_second_overlapping_approval_refused(site, service):
    first = _request(service)
    second = _request(service, date(2025, 7, 3), date(2025, 7, 6))
    service.approve_booking(first.id, approved_by="owner")

    with pytest.raises(SiteUnavailableError):
        service.approve_booking(second.id, approved_by="owner")
    assert service.get_booking(second.id).status == BookingStatus.PENDING


def test_reject_and_no_second_decision(site, service):
    booking = _request(service)
    assert service.reject_booking(booking.id).status == BookingStatus.REJECTED
    with pytest.raises(InvalidTransitionError):
        service.approve_booking(booking.id, approved_by="owner")


def test_deposit_payment(site, service):
    booking = _request(service)
    paid = service.record_deposit_payment(booking.id, "pi_123")

    assert paid.payment_status == PaymentStatus.DEPOSIT_PAID
    stored = service.get_booking(booking.id)
    assert stored.pricing.deposit_paid is True
    assert stored.payment_reference == "pi_123"

    again = service.record_deposit_payment(booking.id, "pi_456")
    assert again.payment_reference == "pi_123"


def test_deposit_on_refunded_booking_refused(site, storage, service):
    booking = _request(service)
    storage.update_booking(booking.model_copy(update={"payment_status": PaymentStatus.REFUNDED}))
    with pytest.raises(InvalidTransitionError):
        service.record_deposit_payment(booking.id, "pi_123")


def test_missing_booking(service):
    with pytest.raises(BookingNotFoundError):
        service.get_booking("bk_missing")


def test_deposit_on_rejected_booking_refused(site, service):
    booking = _request(service)
    service.reject_booking(booking.id)
    with pytest.raises(InvalidTransitionError):
        service.record_deposit_payment(booking.id, "pi_123")
    assert service.get_booking(booking.id).payment_status == PaymentStatus.PENDING


def test_catalog_lookup_by_number(seed, service):
    seed.site(id="site-9", site_number=9, name="Tranquil Cove")
    assert service.get_site_by_number(9).name == "Tranquil Cove"
    with pytest.raises(SiteNotFoundError):
        service.get_site_by_number(42)

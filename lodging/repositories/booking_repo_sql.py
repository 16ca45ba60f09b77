import logging
import os
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .. import config
from ..entities import (
    GLOBAL_SCOPE,
    Booking,
    BookingStatus,
    Coupon,
    PricingRule,
    Settings,
    Site,
    SiteStatus,
    parse_record,
)
from ..errors import UpstreamStorageError
from ..models import (
    BookingRecord,
    CouponRecord,
    PricingRuleRecord,
    SettingsRecord,
    SiteRecord,
)
from ..utils.pii import scrub

logger = logging.getLogger(__name__)

BLOCKING = (BookingStatus.APPROVED.value, BookingStatus.CONFIRMED.value)


def new_booking_id() -> str:
    return "bk_" + os.urandom(6).hex()


def _booking_to_record(b: Booking) -> BookingRecord:
    now = datetime.now(timezone.utc)
    return BookingRecord(
        id=b.id or new_booking_id(),
        site_id=b.site_id,
        site_name=b.site_name,
        guest=b.guest.model_dump(mode="json"),
        check_in=b.check_in,
        check_out=b.check_out,
        number_of_nights=b.number_of_nights,
        number_of_guests=b.number_of_guests,
        rv_details=b.rv_details.model_dump(mode="json") if b.rv_details else None,
        pricing=b.pricing.model_dump(mode="json"),
        status=b.status.value,
        payment_status=b.payment_status.value,
        payment_reference=b.payment_reference,
        coupon_code=b.coupon_code,
        special_requests=b.special_requests,
        created_at=b.created_at or now,
        updated_at=now,
        approved_at=b.approved_at,
        approved_by=b.approved_by,
    )


def _to_booking(row: BookingRecord) -> Booking:
    return parse_record(Booking, row.model_dump())


class SqlBookingStorage:
    """BookingStorage over SQLModel tables. One instance per engine, no globals."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        s = Session(self.engine)
        try:
            yield s
        except SQLAlchemyError as e:
            s.rollback()
            logger.error("storage %s failed: %s", operation, scrub(str(e)))
            raise UpstreamStorageError(operation) from e
        finally:
            s.close()

    # -------- reads --------

    def get_site(self, site_id: str) -> Optional[Site]:
        with self._session("get_site") as s:
            row = s.get(SiteRecord, site_id)
            return parse_record(Site, row.model_dump()) if row else None

    def list_sites(self, active_only: bool = True) -> List[Site]:
        with self._session("list_sites") as s:
            q = select(SiteRecord).order_by(SiteRecord.site_number, SiteRecord.id)
            if active_only:
                q = q.where(SiteRecord.status == SiteStatus.ACTIVE.value)
            return [parse_record(Site, r.model_dump()) for r in s.exec(q).all()]

    def get_site_by_number(self, site_number: int) -> Optional[Site]:
        with self._session("get_site_by_number") as s:
            row = s.exec(select(SiteRecord).where(SiteRecord.site_number == site_number)).first()
            return parse_record(Site, row.model_dump()) if row else None

    def get_bookings_for_site(self, site_id: str) -> List[Booking]:
        with self._session("get_bookings_for_site") as s:
            rows = s.exec(
                select(BookingRecord)
                .where(BookingRecord.site_id == site_id)
                .where(BookingRecord.status.in_(BLOCKING))
            ).all()
            return [_to_booking(r) for r in rows]

    def get_pricing_rules(self, site_id: str) -> List[PricingRule]:
        with self._session("get_pricing_rules") as s:
            rows = s.exec(
                select(PricingRuleRecord)
                .where(PricingRuleRecord.site_id.in_([site_id, GLOBAL_SCOPE]))
                .where(PricingRuleRecord.active == True)  # noqa: E712
                .order_by(PricingRuleRecord.priority.desc(), PricingRuleRecord.id)
            ).all()
            return [parse_record(PricingRule, r.model_dump()) for r in rows]

    def get_coupon_by_code(self, code: str) -> Optional[Coupon]:
        with self._session("get_coupon_by_code") as s:
            row = s.exec(
                select(CouponRecord)
                .where(CouponRecord.code == code.strip().upper())
                .where(CouponRecord.active == True)  # noqa: E712
            ).first()
            return parse_record(Coupon, row.model_dump()) if row else None

    def get_settings(self) -> Settings:
        with self._session("get_settings") as s:
            row = s.get(SettingsRecord, "settings")
            if row is None:
                return Settings(
                    tax_rate=config.DEFAULT_TAX_RATE,
                    deposit_percentage=config.DEFAULT_DEPOSIT_PERCENTAGE,
                )
            return parse_record(Settings, row.model_dump())

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._session("get_booking") as s:
            row = s.get(BookingRecord, booking_id)
            return _to_booking(row) if row else None

    # -------- writes --------

    def create_booking(self, booking: Booking) -> str:
        rec = _booking_to_record(booking)
        booking_id = rec.id
        with self._session("create_booking") as s:
            s.add(rec)
            s.commit()
        return booking_id

    def _has_overlap(
        self, s: Session, site_id: str, check_in: date, check_out: date, exclude_id: Optional[str]
    ) -> bool:
        q = (
            select(BookingRecord.id)
            .where(BookingRecord.site_id == site_id)
            .where(BookingRecord.status.in_(BLOCKING))
            .where(BookingRecord.check_in < check_out)
            .where(BookingRecord.check_out > check_in)
        )
        if exclude_id:
            q = q.where(BookingRecord.id != exclude_id)
        return s.exec(q).first() is not None

    def _lock_site(self, s: Session, site_id: str) -> None:
        # Serializes writers per site (FOR UPDATE is a no-op on SQLite)
        s.exec(select(SiteRecord.id).where(SiteRecord.id == site_id).with_for_update()).first()

    def create_booking_if_available(self, booking: Booking) -> Optional[str]:
        rec = _booking_to_record(booking)
        booking_id = rec.id
        with self._session("create_booking_if_available") as s:
            self._lock_site(s, rec.site_id)
            if self._has_overlap(s, rec.site_id, rec.check_in, rec.check_out, None):
                s.rollback()
                return None
            s.add(rec)
            s.commit()
        return booking_id

    def update_booking(self, booking: Booking, require_available: bool = False) -> bool:
        with self._session("update_booking") as s:
            if require_available:
                self._lock_site(s, booking.site_id)
                if self._has_overlap(
                    s, booking.site_id, booking.check_in, booking.check_out, booking.id
                ):
                    s.rollback()
                    return False
            s.merge(_booking_to_record(booking))
            s.commit()
        return True

    def increment_coupon_usage(self, code: str) -> None:
        with self._session("increment_coupon_usage") as s:
            row = s.exec(
                select(CouponRecord)
                .where(CouponRecord.code == code.strip().upper())
                .with_for_update()
            ).first()
            if row is None:
                return
            row.used_count = (row.used_count or 0) + 1
            s.add(row)
            s.commit()

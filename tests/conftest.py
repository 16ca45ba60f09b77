from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from lodging.api.server import create_app
from lodging.db import init_db, make_engine
from lodging.models import (
    BookingRecord,
    CouponRecord,
    PricingRuleRecord,
    SettingsRecord,
    SiteRecord,
)
from lodging.repositories.booking_repo_sql import SqlBookingStorage

# 2025-06-15 is a Sunday
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
ADMIN_KEY = "test-admin-key"


def fixed_clock():
    return NOW


class Seeder:
    """Writes raw records the way an admin tool or migration would."""

    def __init__(self, engine):
        self.engine = engine
        self._n = 0

    def _add(self, rec):
        with Session(self.engine, expire_on_commit=False) as s:
            s.add(rec)
            s.commit()
        return rec

    def _next_id(self, prefix):
        self._n += 1
        return f"{prefix}-{self._n}"

    def site(self, id="site-1", base_price=75.0, max_occupancy=6, status="active", **kw):
        kw.setdefault("name", "Riverside Retreat")
        return self._add(
            SiteRecord(id=id, base_price=base_price, max_occupancy=max_occupancy, status=status, **kw)
        )

    def rule(self, name, kind, site_id="all", priority=0, **kw):
        return self._add(
            PricingRuleRecord(
                id=kw.pop("id", None) or self._next_id("rule"),
                name=name,
                kind=kind,
                site_id=site_id,
                priority=priority,
                **kw,
            )
        )

    def coupon(self, code="WELCOME2025", type="percentage", value=10.0, **kw):
        kw.setdefault("valid_from", datetime(2025, 1, 1, tzinfo=timezone.utc))
        kw.setdefault("valid_until", datetime(2025, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        return self._add(
            CouponRecord(id=kw.pop("id", None) or self._next_id("coupon"), code=code, type=type, value=value, **kw)
        )

    def booking(self, check_in, check_out, status="confirmed", site_id="site-1", **kw):
        nights = (check_out - check_in).days
        return self._add(
            BookingRecord(
                id=kw.pop("id", None) or self._next_id("bk"),
                site_id=site_id,
                guest={
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "email": "ada@example.com",
                    "phone": "423-555-0123",
                },
                check_in=check_in,
                check_out=check_out,
                number_of_nights=nights,
                pricing={
                    "nights": nights,
                    "price_per_night": 75.0,
                    "subtotal": 75.0 * nights,
                    "discount": 0.0,
                    "tax": 0.0,
                    "total": 75.0 * nights,
                    "deposit_amount": 0.0,
                    "remaining_balance": 75.0 * nights,
                },
                status=status,
                **kw,
            )
        )

    def settings(self, tax_rate=9.25, deposit_percentage=50.0, **kw):
        return self._add(
            SettingsRecord(id="settings", tax_rate=tax_rate, deposit_percentage=deposit_percentage, **kw)
        )


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def seed(engine):
    return Seeder(engine)


@pytest.fixture
def storage(engine):
    return SqlBookingStorage(engine)


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def client(engine):
    app = create_app(engine=engine, clock=fixed_clock, admin_key=ADMIN_KEY)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def stay():
    """Three nights, Sunday to Wednesday."""
    return date(2025, 6, 15), date(2025, 6, 18)

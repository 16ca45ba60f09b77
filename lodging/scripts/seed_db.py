import logging
from datetime import date, datetime, timezone

from sqlmodel import Session

from lodging import config
from lodging.db import init_db, make_engine
from lodging.models import CouponRecord, PricingRuleRecord, SettingsRecord, SiteRecord

logger = logging.getLogger(__name__)


def _utc(y, m, d, end_of_day=False):
    if end_of_day:
        return datetime(y, m, d, 23, 59, 59, tzinfo=timezone.utc)
    return datetime(y, m, d, tzinfo=timezone.utc)


# (number, name, kind, base price, max occupancy)
SITES = [
    (1, "Riverside Retreat", "rv", 75, 6),
    (2, "Mountain View Haven", "rv", 70, 6),
    (3, "Creekside Oasis", "rv", 68, 4),
    (4, "Sunset Point", "rv", 80, 6),
    (5, "Forest Edge Escape", "rv", 65, 4),
    (6, "Riverside Family Site", "rv", 72, 8),
    (7, "Fisherman's Paradise", "rv", 73, 4),
    (8, "Scenic Bluff View", "rv", 78, 6),
    (9, "Tranquil Cove", "rv", 67, 4),
    (10, "Tittle River House", "airbnb", 150, 4),
]

RULES = [
    dict(id="weekend-premium", name="Weekend Premium", kind="day-of-week",
         days_of_week=[5, 6], discount_percentage=-10, priority=5),
    dict(id="weekly-stay", name="Weekly Stay Discount", kind="length-of-stay",
         minimum_nights=7, discount_percentage=15, priority=3),
    dict(id="summer-peak", name="Summer Peak Season", kind="seasonal",
         start_date=date(2025, 6, 1), end_date=date(2025, 8, 31),
         discount_percentage=-20, priority=8),
    dict(id="fall-special", name="Fall Special", kind="seasonal",
         start_date=date(2025, 10, 1), end_date=date(2025, 11, 30),
         discount_percentage=10, priority=6),
]

COUPONS = [
    dict(id="welcome2025", code="WELCOME2025", type="percentage", value=10,
         description="Welcome discount for new guests",
         valid_from=_utc(2025, 1, 1), valid_until=_utc(2025, 12, 31, True),
         usage_limit=100, minimum_stay=2),
    dict(id="longstay", code="LONGSTAY", type="percentage", value=20,
         description="Extended stay discount",
         valid_from=_utc(2025, 1, 1), valid_until=_utc(2025, 12, 31, True),
         usage_limit=50, minimum_stay=14),
    dict(id="earlybird", code="EARLYBIRD", type="fixed", value=25,
         description="Early booking discount",
         valid_from=_utc(2025, 1, 1), valid_until=_utc(2025, 3, 31, True),
         usage_limit=30, minimum_stay=3),
]


def load_sites(cx: Session) -> int:
    for number, name, kind, price, occupancy in SITES:
        cx.merge(
            SiteRecord(
                id=f"site-{number}",
                site_number=number,
                name=name,
                kind=kind,
                base_price=float(price),
                max_occupancy=occupancy,
                status="active",
            )
        )
    return len(SITES)


def load_rules(cx: Session) -> int:
    for r in RULES:
        cx.merge(PricingRuleRecord(site_id="all", active=True, **r))
    return len(RULES)


def load_coupons(cx: Session) -> int:
    for c in COUPONS:
        cx.merge(CouponRecord(used_count=0, active=True, **c))
    return len(COUPONS)


def load_settings(cx: Session) -> None:
    cx.merge(
        SettingsRecord(
            id="settings",
            tax_rate=9.25,  # Tennessee sales tax
            deposit_percentage=50,
            booking_lead_time=1,
            check_in_time="15:00",
            check_out_time="11:00",
        )
    )


def seed(engine) -> None:
    init_db(engine)
    with Session(engine) as cx:
        n_sites = load_sites(cx)
        n_rules = load_rules(cx)
        n_coupons = load_coupons(cx)
        load_settings(cx)
        cx.commit()
    logger.info("seeded %d sites, %d rules, %d coupons, settings", n_sites, n_rules, n_coupons)


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL)
    seed(make_engine())

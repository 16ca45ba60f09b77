from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SiteRecord(SQLModel, table=True):
    __tablename__ = "sites"

    id: str = Field(primary_key=True)
    site_number: Optional[int] = Field(default=None, index=True)
    name: str
    kind: str = "rv"
    description: str = ""
    base_price: float
    max_occupancy: int = 1
    status: str = Field(default="active", index=True)
    amenities: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    features: List[str] = Field(default_factory=list, sa_column=Column(JSON))


class BookingRecord(SQLModel, table=True):
    __tablename__ = "bookings"

    id: str = Field(primary_key=True)
    site_id: str = Field(index=True)
    site_name: str = ""
    guest: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    check_in: date
    check_out: date  # exclusive
    number_of_nights: int
    number_of_guests: int = 1
    rv_details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    pricing: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    status: str = Field(default="pending", index=True)
    payment_status: str = "pending"
    payment_reference: Optional[str] = None
    coupon_code: Optional[str] = None
    special_requests: Optional[str] = None
    created_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True))
    )
    approved_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    approved_by: Optional[str] = None


class PricingRuleRecord(SQLModel, table=True):
    __tablename__ = "pricing_rules"

    id: str = Field(primary_key=True)
    site_id: str = Field(default="all", index=True)  # "all" = every site
    name: str
    kind: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    minimum_nights: Optional[int] = None
    days_of_week: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    discount_percentage: Optional[float] = None  # negative = surcharge
    price_override: Optional[float] = None
    priority: int = 0
    active: bool = True


class CouponRecord(SQLModel, table=True):
    __tablename__ = "coupons"

    id: str = Field(primary_key=True)
    code: str = Field(index=True, unique=True)
    description: str = ""
    type: str
    value: float
    minimum_stay: Optional[int] = None
    valid_from: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    valid_until: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    usage_limit: Optional[int] = None
    used_count: int = 0
    active: bool = True


class SettingsRecord(SQLModel, table=True):
    __tablename__ = "settings"

    id: str = Field(default="settings", primary_key=True)
    tax_rate: float = 0.0
    deposit_percentage: float = 50.0
    booking_lead_time: int = 0
    maintenance_mode: bool = False
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"

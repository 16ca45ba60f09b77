"""
Typed entities for the reservation core.

Storage hands back loosely shaped rows/documents. Everything goes through
`parse_record` before the pricing code sees it, so a bad field fails here
and not halfway through a price calculation.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import RecordValidationError

GLOBAL_SCOPE = "all"


class SiteKind(str, Enum):
    RV = "rv"
    RENTAL = "airbnb"


class SiteStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"
    REFUNDED = "refunded"


class RuleKind(str, Enum):
    SEASONAL = "seasonal"
    LENGTH_OF_STAY = "length-of-stay"
    DAY_OF_WEEK = "day-of-week"
    CUSTOM = "custom"  # stored, never matched


class CouponType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def _to_date(v: Any) -> Any:
    if isinstance(v, datetime):
        return v.date()
    return v


def _to_utc(v: Any) -> Any:
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime(v.year, v.month, v.day, tzinfo=timezone.utc)
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


# -------- Catalog --------


class Site(BaseModel):
    id: str
    name: str = ""
    site_number: Optional[int] = None
    kind: SiteKind = SiteKind.RV
    description: str = ""
    base_price: float = Field(ge=0)
    max_occupancy: int = Field(default=1, ge=1)
    status: SiteStatus = SiteStatus.ACTIVE
    amenities: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)

    @field_validator("amenities", "features", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class PricingRule(BaseModel):
    id: Optional[str] = None
    site_id: str = GLOBAL_SCOPE
    name: str
    kind: RuleKind
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    minimum_nights: Optional[int] = Field(default=None, ge=1)
    days_of_week: List[int] = Field(default_factory=list)
    discount_percentage: Optional[float] = None
    price_override: Optional[float] = Field(default=None, ge=0)
    priority: int = 0
    active: bool = True

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def strip_time(cls, v):
        return _to_date(v)

    @field_validator("days_of_week", mode="before")
    @classmethod
    def default_days(cls, v):
        return [] if v is None else v

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, v: List[int]) -> List[int]:
        for d in v:
            if d < 0 or d > 6:
                raise ValueError("days_of_week entries must be 0 (Sunday) .. 6 (Saturday)")
        return v

    @property
    def is_global(self) -> bool:
        return self.site_id == GLOBAL_SCOPE


class Coupon(BaseModel):
    id: Optional[str] = None
    code: str = Field(min_length=1)
    description: str = ""
    type: CouponType
    value: float = Field(ge=0)
    minimum_stay: Optional[int] = Field(default=None, ge=1)
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = Field(default=None, ge=0)
    used_count: int = Field(default=0, ge=0)
    active: bool = True

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("valid_from", "valid_until", mode="before")
    @classmethod
    def assume_utc(cls, v):
        return _to_utc(v)

    @field_validator("used_count", mode="before")
    @classmethod
    def default_used(cls, v):
        return 0 if v is None else v


class Settings(BaseModel):
    tax_rate: float = Field(default=0.0, ge=0)
    deposit_percentage: float = Field(default=50.0, ge=0, le=100)
    booking_lead_time: int = Field(default=0, ge=0)
    maintenance_mode: bool = False
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"


# -------- Pricing results --------


class RateResolution(BaseModel):
    price_per_night: float
    cumulative_discount_percent: float = 0.0
    applied_rule_names: List[str] = Field(default_factory=list)


class PriceBreakdown(BaseModel):
    nights: int
    price_per_night: float
    subtotal: float
    discount: float
    discount_reason: str = ""
    tax: float
    total: float
    deposit_amount: float
    remaining_balance: float
    coupon_code: Optional[str] = None  # set only when the coupon was applied


class BookingPricing(PriceBreakdown):
    deposit_paid: bool = False


# -------- Bookings --------


class GuestInfo(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class RVDetails(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    length: Optional[float] = Field(default=None, ge=0)
    license_plate: Optional[str] = None


class Booking(BaseModel):
    id: Optional[str] = None
    site_id: str
    site_name: str = ""
    guest: GuestInfo
    check_in: date
    check_out: date
    number_of_nights: int = Field(ge=1)
    number_of_guests: int = Field(default=1, ge=1)
    rv_details: Optional[RVDetails] = None
    pricing: BookingPricing
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: Optional[str] = None
    coupon_code: Optional[str] = None
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def strip_time(cls, v):
        return _to_date(v)

    @field_validator("created_at", "updated_at", "approved_at", mode="before")
    @classmethod
    def assume_utc(cls, v):
        return _to_utc(v)


M = TypeVar("M", bound=BaseModel)


def parse_record(model: Type[M], record: Mapping[str, Any]) -> M:
    """Validate one storage record into `model`, or raise RecordValidationError."""
    try:
        return model.model_validate(dict(record))
    except ValidationError as e:
        raise RecordValidationError(
            model.__name__, record.get("id"), e.errors(include_url=False)
        ) from e

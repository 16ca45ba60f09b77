from pydantic import BaseModel, Field, field_validator
from typing import Optional


# -------- Quotes / availability --------


class QuoteRequest(BaseModel):
    site_id: str = Field(min_length=1)
    check_in: str  # ISO date "YYYY-MM-DD"
    check_out: str  # ISO date "YYYY-MM-DD", exclusive
    coupon_code: Optional[str] = None

    @field_validator("coupon_code")
    @classmethod
    def blank_coupon(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None


# -------- Booking --------


class ContactInfo(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=3)


class RVInfo(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    length: Optional[float] = Field(default=None, ge=0)
    license_plate: Optional[str] = None


class BookingRequest(QuoteRequest):
    guests: int = Field(default=1, ge=1)
    contact: ContactInfo
    rv: Optional[RVInfo] = None
    special_requests: Optional[str] = Field(default=None, max_length=2000)


class DepositRequest(BaseModel):
    payment_reference: str = Field(min_length=1)


class ApproveRequest(BaseModel):
    approved_by: str = Field(min_length=1)

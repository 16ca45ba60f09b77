# lodging/errors.py
from typing import Any, List, Optional


class BookingError(Exception):
    """Base class for every error raised by the reservation core."""


class NotFoundError(BookingError):
    pass


class SiteNotFoundError(NotFoundError):
    def __init__(self, site_id: str):
        super().__init__(f"Site not found: {site_id}")
        self.site_id = site_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class InvalidRangeError(BookingError, ValueError):
    def __init__(self, check_in: Any, check_out: Any):
        super().__init__(f"check_out ({check_out}) must be after check_in ({check_in})")
        self.check_in = check_in
        self.check_out = check_out


class UpstreamStorageError(BookingError):
    """A storage call failed. The driver exception is kept as __cause__."""

    def __init__(self, operation: str):
        super().__init__(f"Storage operation failed: {operation}")
        self.operation = operation


class RecordValidationError(BookingError):
    """A stored record could not be turned into a typed entity."""

    def __init__(self, kind: str, record_id: Optional[str], errors: List[dict]):
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) for e in errors)
        super().__init__(f"Malformed {kind} record {record_id!r}: {fields}")
        self.kind = kind
        self.record_id = record_id
        self.errors = errors


class SiteUnavailableError(BookingError):
    pass


class GuestLimitError(BookingError, ValueError):
    pass


class InvalidTransitionError(BookingError):
    pass

from datetime import date, datetime, timezone
from typing import Callable, Union

from ..errors import InvalidRangeError

DateLike = Union[date, datetime]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_date(d: DateLike) -> date:
    """Only the calendar date takes part in pricing and availability."""
    if isinstance(d, datetime):
        return d.date()
    return d


def count_nights(check_in: DateLike, check_out: DateLike) -> int:
    nights = (as_date(check_out) - as_date(check_in)).days
    if nights <= 0:
        raise InvalidRangeError(check_in, check_out)
    return nights


def weekday_index(d: DateLike) -> int:
    """0=Sunday .. 6=Saturday."""
    return as_date(d).isoweekday() % 7

import logging
import time
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse
from prometheus_client import Counter, Histogram, make_asgi_app
from sqlalchemy.engine import Engine

from .. import config
from ..db import init_db, make_engine
from ..entities import GuestInfo, RVDetails
from ..errors import (
    BookingError,
    GuestLimitError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    RecordValidationError,
    SiteUnavailableError,
    UpstreamStorageError,
)
from ..pricing.dates import Clock, utc_now
from ..repositories.booking_repo_sql import SqlBookingStorage
from ..services.booking_service import BookingService
from ..utils.schemas import (
    ApproveRequest,
    BookingRequest,
    DepositRequest,
    QuoteRequest,
)

logger = logging.getLogger(__name__)

# --- Metrics ---
quote_requests_total = Counter("quote_requests_total", "Total price quote requests")
quote_latency_seconds = Histogram("quote_request_latency_seconds", "Quote latency")
booking_request_ok = Counter("booking_request_ok_total", "Accepted booking requests")
booking_request_fail = Counter("booking_request_fail_total", "Refused booking requests")

STATUS_FOR_ERROR = (
    (NotFoundError, 404),
    (InvalidRangeError, 400),
    (GuestLimitError, 400),
    (SiteUnavailableError, 409),
    (InvalidTransitionError, 409),
    (UpstreamStorageError, 502),
    (RecordValidationError, 502),
)


def _parse_iso_date(s: str, field: str) -> date:
    try:
        return date.fromisoformat(s)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=400, detail=f"{field} must be ISO date YYYY-MM-DD"
        )


def get_service(request: Request) -> BookingService:
    return request.app.state.service


def require_admin(request: Request) -> None:
    key = request.app.state.admin_key
    if not key or request.headers.get("X-Admin-Key") != key:
        raise HTTPException(status_code=403, detail="forbidden")


router = APIRouter()


@router.get("/sites")
async def list_sites(active_only: bool = True, service: BookingService = Depends(get_service)):
    return [s.model_dump(mode="json") for s in service.list_sites(active_only=active_only)]


@router.get("/sites/by-number/{site_number}")
async def site_by_number(site_number: int, service: BookingService = Depends(get_service)):
    return service.get_site_by_number(site_number).model_dump(mode="json")


@router.get("/sites/{site_id}/availability")
async def site_availability(
    site_id: str,
    check_in: str,
    check_out: str,
    service: BookingService = Depends(get_service),
):
    ci = _parse_iso_date(check_in, "check_in")
    co = _parse_iso_date(check_out, "check_out")
    return {
        "site_id": site_id,
        "check_in": ci,
        "check_out": co,
        "available": service.check_availability(site_id, ci, co),
    }


@router.post("/quote")
async def quote(req: QuoteRequest, service: BookingService = Depends(get_service)):
    start = time.perf_counter()
    try:
        if config.OBS_ON:
            quote_requests_total.inc()
        ci = _parse_iso_date(req.check_in, "check_in")
        co = _parse_iso_date(req.check_out, "check_out")
        breakdown = service.calculate_booking_price(req.site_id, ci, co, req.coupon_code)
        out = breakdown.model_dump()
        out["coupon_applied"] = breakdown.coupon_code is not None
        return out
    finally:
        if config.OBS_ON:
            quote_latency_seconds.observe(time.perf_counter() - start)


@router.post("/bookings", status_code=201)
async def create_booking(req: BookingRequest, service: BookingService = Depends(get_service)):
    try:
        booking = service.request_booking(
            site_id=req.site_id,
            check_in=_parse_iso_date(req.check_in, "check_in"),
            check_out=_parse_iso_date(req.check_out, "check_out"),
            guest=GuestInfo(**req.contact.model_dump()),
            number_of_guests=req.guests,
            coupon_code=req.coupon_code,
            rv_details=RVDetails(**req.rv.model_dump()) if req.rv else None,
            special_requests=req.special_requests,
        )
    except (BookingError, HTTPException):
        if config.OBS_ON:
            booking_request_fail.inc()
        raise
    if config.OBS_ON:
        booking_request_ok.inc()
    return booking.model_dump(mode="json")


@router.get("/bookings/{booking_id}")
async def get_booking(booking_id: str, service: BookingService = Depends(get_service)):
    return service.get_booking(booking_id).model_dump(mode="json")


@router.post("/bookings/{booking_id}/deposit", dependencies=[Depends(require_admin)])
async def record_deposit(
    booking_id: str, req: DepositRequest, service: BookingService = Depends(get_service)
):
    booking = service.record_deposit_payment(booking_id, req.payment_reference)
    return {"booking_id": booking_id, "payment_status": booking.payment_status.value}


@router.post("/bookings/{booking_id}/approve", dependencies=[Depends(require_admin)])
async def approve_booking(
    booking_id: str, req: ApproveRequest, service: BookingService = Depends(get_service)
):
    booking = service.approve_booking(booking_id, req.approved_by)
    return {"booking_id": booking_id, "status": booking.status.value}


@router.post("/bookings/{booking_id}/reject", dependencies=[Depends(require_admin)])
async def reject_booking(booking_id: str, service: BookingService = Depends(get_service)):
    booking = service.reject_booking(booking_id)
    return {"booking_id": booking_id, "status": booking.status.value}


def _install_error_handlers(app: FastAPI) -> None:
    def handler_for(status_code: int):
        async def handle(request: Request, exc: BookingError):
            if status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return ORJSONResponse(status_code=status_code, content={"detail": str(exc)})

        return handle

    for exc_class, status_code in STATUS_FOR_ERROR:
        app.add_exception_handler(exc_class, handler_for(status_code))


def create_app(
    engine: Optional[Engine] = None,
    clock: Clock = utc_now,
    admin_key: Optional[str] = None,
) -> FastAPI:
    """Run with: uvicorn lodging.api.server:create_app --factory"""
    logging.basicConfig(level=config.LOG_LEVEL)

    engine = engine or make_engine()
    app = FastAPI(title="Lodging reservations", default_response_class=ORJSONResponse)
    app.state.service = BookingService(SqlBookingStorage(engine), clock=clock)
    app.state.admin_key = admin_key if admin_key is not None else config.ADMIN_KEY

    @app.on_event("startup")
    def on_start() -> None:
        init_db(engine)

    app.include_router(router)
    _install_error_handlers(app)

    # Expose /metrics for Prometheus (only if enabled)
    if config.OBS_ON:
        app.mount("/metrics", make_asgi_app())
    return app

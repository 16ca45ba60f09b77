from datetime import date

from lodging.db import make_engine
from lodging.repositories.booking_repo_sql import SqlBookingStorage
from lodging.services.booking_service import BookingService

svc = BookingService(SqlBookingStorage(make_engine()))
for site_id, ci, co, coupon in [
    ("site-1", date(2025, 6, 15), date(2025, 6, 18), None),
    ("site-1", date(2025, 6, 15), date(2025, 6, 18), "WELCOME2025"),
    ("site-1", date(2025, 6, 13), date(2025, 6, 20), None),
]:
    p = svc.calculate_booking_price(site_id, ci, co, coupon)
    print(site_id, ci, co, coupon or "-", "→", f"{p.total:.2f}", f"(deposit {p.deposit_amount:.2f})")
    print("  ", p.discount_reason or "no adjustments")

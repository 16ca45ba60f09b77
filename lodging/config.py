# lodging/config.py
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = (
    os.getenv("DATABASE_URL")
    or os.getenv("POSTGRES_DSN")
    or "sqlite:///./lodging.db"
)

# --- Feature flags ---
OBS_ON = os.getenv("OBS_ON", "on") == "on"  # Prometheus /metrics

ADMIN_KEY = os.getenv("ADMIN_KEY")  # required for staff/payment endpoints
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Used when the settings record has not been created yet
DEFAULT_TAX_RATE = float(os.getenv("DEFAULT_TAX_RATE", "0"))
DEFAULT_DEPOSIT_PERCENTAGE = float(os.getenv("DEFAULT_DEPOSIT_PERCENTAGE", "50"))

import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    items = tuple(item.strip().lower() for item in value.split(",") if item.strip())
    return items or default

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ("http://localhost:4200",))

# Consultation length shared by every provider and weekday.
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "50"))

# Bookings in these states no longer occupy their slot.
INACTIVE_BOOKING_STATUSES = ("cancelled", "rejected")
DEFAULT_BOOKING_STATUS = "pending"
RESCHEDULED_BOOKING_STATUS = "rescheduled"
APPOINTMENT_STATUSES = (
    "pending",
    "approved",
    "in-progress",
    "completed",
    "rescheduled",
    "no-show",
    "cancelled",
    "rejected",
)
NO_SHOW_GRACE_MINUTES = 15

def validate_runtime_config() -> None:
    if SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("SLOT_DURATION_MINUTES must be a positive number of minutes.")
    if APP_ENV.lower() == "production" and not os.getenv("DATABASE_URL"):
        raise RuntimeError("DATABASE_URL must be set in production.")

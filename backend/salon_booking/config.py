# backend/salon_booking/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/salon.db"
    redis_url: str = "redis://localhost:6379/0"
    redis_cache_enabled: bool = True
    events_enabled: bool = True

    log_level: str = "INFO"

    # Availability grid
    slot_step_minutes: int = 30
    buffer_minutes: int = 0
    horizon_days: int = 60
    cache_ttl_seconds: int = 86400

    # Fallback hours when a location has no schedule for the day ("HH:MM-HH:MM")
    weekday_hours: str = "09:00-19:00"
    weekend_hours: str = "10:00-18:00"

    # Recommended start times, comma separated
    best_fit_times: str = "10:00,10:30,13:00,13:30,15:00,15:30"
    best_fit_limit: int = 3

    # Customer messaging
    salon_name: str = "Mango Nail Spa"
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""
    resend_api_key: str = ""
    email_from: str = "Mango Nail Spa <bookings@mangonailspa.com>"
    messaging_timeout_seconds: float = 10.0

    # Phone verification
    verification_code_ttl_minutes: int = 5
    verification_max_attempts: int = 3
    # Bookings need a verified phone number
    require_phone_verification: bool = False

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative path -> absolute, anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()

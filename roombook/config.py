# roombook/config.py

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/roombook.db"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 2.0

    # Operating hours and slot dates are interpreted in this zone
    timezone: str = "UTC"

    max_meeting_hours: int = Field(8, ge=1, le=24)
    upcoming_meetings_hours: Optional[int] = Field(None, ge=1, le=168)

    room_cache_time: int = Field(3600, ge=300, le=86400 * 30)
    bookings_cache_time: int = 86400

    booking_create_limit: int = 10
    booking_update_limit: int = 20
    rate_limit_window_seconds: int = 60
    rate_limit_max_keys: int = 10000

    webhook_secret: Optional[str] = None
    webhook_latest_only: bool = True
    record_store_api_url: str = "https://api.airtable.com/v0"
    record_store_api_key: Optional[str] = None
    record_store_base_id: Optional[str] = None
    rooms_table_id: str = "rooms"
    bookings_table_id: str = "bookings"

    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()

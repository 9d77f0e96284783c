"""
Booking configuration and time helpers for slot calculation.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from ...config import settings


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the booking/slots engine.

    Attributes:
        slot_step_minutes: Width of one grid slot
        max_meeting_hours: Global duration cap, rooms may override it
        timezone: Zone that operating hours and calendar days refer to
        upcoming_meetings_hours: Look-ahead for the upcoming list,
            None means "until the end of the current day"
    """
    slot_step_minutes: int = 30
    max_meeting_hours: float = 8
    timezone: str = "UTC"
    upcoming_meetings_hours: int | None = None

    def __post_init__(self):
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.max_meeting_hours <= 0:
            raise ValueError(f"max_meeting_hours must be positive, got {self.max_meeting_hours}")
        if self.upcoming_meetings_hours is not None and self.upcoming_meetings_hours < 1:
            raise ValueError(f"upcoming_meetings_hours must be at least 1, got {self.upcoming_meetings_hours}")

    @property
    def slot_step_seconds(self) -> int:
        return self.slot_step_minutes * 60

    @property
    def tz(self) -> tzinfo:
        return get_zone(self.timezone)


@lru_cache
def get_booking_config() -> BookingConfig:
    """Booking configuration built from application settings (singleton)."""
    return BookingConfig(
        max_meeting_hours=settings.max_meeting_hours,
        timezone=settings.timezone,
        upcoming_meetings_hours=settings.upcoming_meetings_hours,
    )


@lru_cache
def get_zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


# ── Time helpers ─────────────────────────────────────────────────────────


def seconds_to_time_str(seconds: int) -> str:
    """28800 -> "08:00"."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours:02d}:{minutes:02d}"


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def seconds_since(midnight: datetime, moment: datetime) -> int:
    """
    Wall-clock seconds from ``midnight`` to ``moment`` in midnight's zone.

    May exceed 86400. On a DST change day 08:00 local is still 28800,
    matching the slot grid.
    """
    local = moment.astimezone(midnight.tzinfo)
    return int((local.replace(tzinfo=None) - midnight.replace(tzinfo=None)).total_seconds())


def ensure_aware(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def to_storage(moment: datetime) -> str:
    """UTC ISO-8601 with a fixed width, e.g. "2024-03-15T09:00:00+00:00"."""
    return ensure_aware(moment).astimezone(timezone.utc).isoformat(timespec="seconds")


def from_storage(value: str | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """[local midnight, next local midnight) of ``day``."""
    start = local_midnight(day, tz)
    end = local_midnight(day + timedelta(days=1), tz)
    return start, end

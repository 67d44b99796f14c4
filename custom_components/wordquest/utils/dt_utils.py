"""Date and time utilities for WordQuest.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, dateutil.

Functions:
    - dt_now_utc: Get current datetime in UTC
    - dt_now_iso: Get current UTC datetime as ISO string
    - as_utc: Convert a datetime to UTC
    - dt_parse: Leniently parse legacy timestamps (ISO, JS date strings, epoch ms)
    - dt_to_utc_iso: Parse a timestamp and return a UTC ISO string
    - dt_week_key: ISO week key ("2026-W03") for a datetime
    - dt_timestamp_slug: Compact timestamp used in backup key names
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil import parser as dateutil_parser

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Naive legacy timestamps are interpreted in this timezone
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Epoch values above this are treated as milliseconds (JS Date.now())
EPOCH_MILLISECONDS_CUTOFF = 100_000_000_000

# Week key format (matches statistics period keys)
WEEK_KEY_FORMAT = "{year}-W{week:02d}"

# Backup key timestamp format
TIMESTAMP_SLUG_FORMAT = "%Y%m%dT%H%M%S%fZ"


# ==============================================================================
# Current Time
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware).

    Returns:
        Current UTC datetime.
    """
    return datetime.now(UTC)


def dt_now_iso() -> str:
    """Return the current UTC datetime as an ISO 8601 string."""
    return dt_now_utc().isoformat()


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Args:
        dt_obj: Datetime object (naive values are assumed DEFAULT_TIME_ZONE)

    Returns:
        Datetime in UTC timezone
    """
    if dt_obj.tzinfo is None:
        # Assume it's in default timezone if naive
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse(value: str | int | float | date | datetime | None) -> datetime | None:
    """Parse a legacy timestamp into a UTC-aware datetime.

    Legacy records stored timestamps in several shapes depending on the
    writer: ISO strings ("2024-03-01T10:00:00.000Z"), JavaScript
    Date.toString() output, or epoch numbers in seconds or milliseconds.

    Args:
        value: Raw timestamp value, or None

    Returns:
        UTC-aware datetime, or None if the value cannot be parsed.

    Example:
        "2024-03-01T10:00:00.000Z" → datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
        1709287200000 → datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return as_utc(value)

    if isinstance(value, date):
        return as_utc(datetime.combine(value, datetime.min.time()))

    if isinstance(value, int | float):
        seconds = float(value)
        if abs(seconds) >= EPOCH_MILLISECONDS_CUTOFF:
            seconds /= 1000
        try:
            return datetime.fromtimestamp(seconds, UTC)
        except (OverflowError, OSError, ValueError):
            _LOGGER.debug("Epoch value out of range: %s", value)
            return None

    if not isinstance(value, str):
        return None

    try:
        parsed = dateutil_parser.parse(value)
    except (ValueError, OverflowError):
        _LOGGER.debug("Unparseable timestamp: %s", value)
        return None
    return as_utc(parsed)


def dt_to_utc_iso(value: str | int | float | date | datetime | None) -> str | None:
    """Parse a timestamp and return it as a UTC ISO string, or None."""
    parsed = dt_parse(value)
    return parsed.isoformat() if parsed else None


# ==============================================================================
# Formatting
# ==============================================================================


def dt_week_key(dt_obj: datetime | None = None) -> str:
    """Return the ISO week key for a datetime.

    Args:
        dt_obj: Datetime to key (defaults to now in UTC)

    Returns:
        Week key such as "2026-W03". ISO year is used, so the first days of
        January can belong to the previous year's last week.
    """
    moment = as_utc(dt_obj) if dt_obj else dt_now_utc()
    iso_year, iso_week, _ = moment.isocalendar()
    return WEEK_KEY_FORMAT.format(year=iso_year, week=iso_week)


def dt_timestamp_slug(dt_obj: datetime | None = None) -> str:
    """Return a compact, sortable UTC timestamp ("20260118T123000000000Z")."""
    moment = as_utc(dt_obj) if dt_obj else dt_now_utc()
    return moment.strftime(TIMESTAMP_SLUG_FORMAT)

"""Clock, timezone database and wall-clock arithmetic utilities for zonedate."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo

from dateutil.relativedelta import relativedelta

from .exceptions import InvalidOptionError, UnknownZoneError

logger = logging.getLogger(__name__)

# Environment variable that freezes the clock (ISO 8601, e.g. "2025-01-15T12:00:00Z")
TEST_TIME_ENV = "ZONEDATE_TEST_TIME"

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.UTC)
ONE_MS = datetime.timedelta(milliseconds=1)

# Epoch range a UTC datetime can represent (years 1-9999)
MIN_EPOCH_MS = (datetime.datetime.min.replace(tzinfo=datetime.UTC) - EPOCH) // ONE_MS
MAX_EPOCH_MS = (datetime.datetime.max.replace(tzinfo=datetime.UTC) - EPOCH) // ONE_MS

# Units shifted as elapsed time; everything else is a wall-clock shift
ELAPSED_UNITS: dict[str, datetime.timedelta] = {
    "millisecond": ONE_MS,
    "second": datetime.timedelta(seconds=1),
    "minute": datetime.timedelta(minutes=1),
    "hour": datetime.timedelta(hours=1),
}
CALENDAR_UNITS = ("day", "week", "month", "year")
UNITS = (*ELAPSED_UNITS, *CALENDAR_UNITS)


class TimeProvider:
    """Provides current time with test time override support."""

    def __init__(self, env_var: str = TEST_TIME_ENV):
        """Initialize time provider.

        Args:
            env_var: Environment variable consulted for a frozen test time
        """
        self.env_var = env_var

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the ZONEDATE_TEST_TIME environment variable.
        Format: ISO 8601 datetime string (e.g., "2025-10-27T08:20:00-07:00").
        Naive test times are read as UTC.

        Returns:
            Current time in UTC with timezone info
        """
        test_time = os.environ.get(self.env_var)
        if test_time:
            try:
                from dateutil import parser as date_parser

                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.UTC)
                return dt.replace(tzinfo=datetime.UTC)

            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", self.env_var, test_time, e)

        return datetime.datetime.now(datetime.UTC)

    def now_epoch_ms(self) -> int:
        """Current time as epoch milliseconds."""
        return datetime_to_epoch_ms(self.now_utc())


_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function).

    Returns:
        Current time in UTC
    """
    return _time_provider.now_utc()


def load_zone(zone: str) -> zoneinfo.ZoneInfo:
    """Load a zone from the IANA database.

    Args:
        zone: IANA timezone identifier (e.g., "Asia/Tokyo", "GMT")

    Returns:
        ZoneInfo for the identifier

    Raises:
        InvalidOptionError: If zone is not a non-empty string
        UnknownZoneError: If the database has no such zone
    """
    if not isinstance(zone, str) or not zone:
        raise InvalidOptionError("Timezone must be a non-empty string", option="timezone", value=zone)

    try:
        return zoneinfo.ZoneInfo(zone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        # ValueError covers malformed keys such as absolute paths
        raise UnknownZoneError(zone) from e


def datetime_to_epoch_ms(dt: datetime.datetime) -> int:
    """Convert a datetime to epoch milliseconds.

    Naive datetimes are read as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.UTC)
    return (dt - EPOCH) // ONE_MS


def epoch_ms_to_datetime(epoch_ms: int, tz: datetime.tzinfo = datetime.UTC) -> datetime.datetime:
    """Convert epoch milliseconds to an aware datetime in ``tz``.

    Raises:
        InvalidOptionError: If the instant has no wall clock in ``tz`` within
            years 1-9999
    """
    try:
        return (EPOCH + epoch_ms * ONE_MS).astimezone(tz)
    except OverflowError as e:
        raise InvalidOptionError(
            "Epoch value outside the representable date range", option="epoch_ms", value=epoch_ms
        ) from e


def utc_offset_minutes(tz: datetime.tzinfo, epoch_ms: int) -> int:
    """Offset of ``tz`` from UTC at the given instant, east-positive, in minutes."""
    offset = epoch_ms_to_datetime(epoch_ms, tz).utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() // 60)


def shift(dt: datetime.datetime, unit: str, amount: int) -> datetime.datetime:
    """Shift an aware datetime by ``amount`` units.

    Sub-day units move by elapsed time. Days, weeks, months and years move
    the wall clock in ``dt``'s own zone, so "+1 day" keeps the local time of
    day across DST changes.

    Raises:
        ValueError: If unit is not one of UNITS
    """
    tz = dt.tzinfo
    if unit in ELAPSED_UNITS:
        moved = dt.astimezone(datetime.UTC) + ELAPSED_UNITS[unit] * amount
        return moved.astimezone(tz)
    if unit in CALENDAR_UNITS:
        moved = dt + relativedelta(**{f"{unit}s": amount})
        # Round-trip through UTC to settle times that fall in a DST gap
        return moved.astimezone(datetime.UTC).astimezone(tz)
    raise ValueError(f"Unsupported unit: {unit!r}")


def start_of_day(dt: datetime.datetime) -> datetime.datetime:
    """Midnight of ``dt``'s calendar day in ``dt``'s own zone."""
    midnight = datetime.datetime.combine(dt.date(), datetime.time.min, tzinfo=dt.tzinfo)
    return midnight.astimezone(datetime.UTC).astimezone(dt.tzinfo)

"""Instant value types.

An :class:`Instant` is an absolute point in time stored as epoch milliseconds.
A :class:`ZonedInstant` additionally carries the zone it was created for and
derives its wall-clock fields from that zone's rules. Equality, hashing and
ordering only ever look at the epoch value, so instants bound to different
zones compare as the same moment.
"""

from __future__ import annotations

import datetime
import functools
from typing import TYPE_CHECKING

from .exceptions import InvalidOptionError
from .locales import get_locale_table
from .timezone_utils import (
    UNITS,
    datetime_to_epoch_ms,
    epoch_ms_to_datetime,
    shift,
    start_of_day,
)

if TYPE_CHECKING:
    from .registry import ZoneBinding

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _normalize_unit(unit: str) -> str:
    unit = unit.lower()
    if unit not in UNITS and unit.endswith("s") and unit[:-1] in UNITS:
        unit = unit[:-1]
    if unit not in UNITS:
        raise ValueError(f"Unsupported unit: {unit!r}")
    return unit


@functools.total_ordering
class Instant:
    """An absolute point in time in epoch milliseconds."""

    __slots__ = ("_epoch_ms",)

    def __init__(self, epoch_ms: int) -> None:
        if isinstance(epoch_ms, bool) or not isinstance(epoch_ms, int):
            raise ValueError(f"epoch_ms must be an int, got {type(epoch_ms).__name__}")
        if not INT64_MIN <= epoch_ms <= INT64_MAX:
            raise ValueError(f"epoch_ms out of 64-bit range: {epoch_ms}")
        self._epoch_ms = epoch_ms

    @classmethod
    def from_datetime(cls, dt: datetime.datetime) -> Instant:
        """Instant for ``dt``; naive datetimes are read as UTC."""
        return cls(datetime_to_epoch_ms(dt))

    @property
    def epoch_ms(self) -> int:
        return self._epoch_ms

    def timestamp(self) -> float:
        """Seconds since the epoch, like ``datetime.timestamp()``."""
        return self._epoch_ms / 1000

    def to_datetime(self, tz: datetime.tzinfo | None = None) -> datetime.datetime:
        """Aware datetime for this instant, in UTC unless ``tz`` is given."""
        return epoch_ms_to_datetime(self._epoch_ms, tz or datetime.UTC)

    def is_near(self, other: Instant | int, margin_ms: int = 0) -> bool:
        """True when ``other`` is within ``margin_ms`` of this instant.

        Args:
            other: Another instant or an epoch value in milliseconds
            margin_ms: Allowed distance in milliseconds, inclusive
        """
        other_ms = other.epoch_ms if isinstance(other, Instant) else other
        return abs(self._epoch_ms - other_ms) <= margin_ms

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Instant):
            return self._epoch_ms == other._epoch_ms
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Instant):
            return self._epoch_ms < other._epoch_ms
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._epoch_ms)

    def __repr__(self) -> str:
        return f"Instant({self._epoch_ms})"

    def __str__(self) -> str:
        return self.to_datetime().isoformat(timespec="milliseconds")


class ZonedInstant(Instant):
    """An instant bound to a timezone.

    Wall-clock fields are computed from the bound zone's offset at this
    instant. The bound zone never changes; :meth:`in_zone` and the arithmetic
    helpers return new objects.
    """

    __slots__ = ("_binding",)

    def __init__(self, epoch_ms: int, binding: ZoneBinding) -> None:
        super().__init__(epoch_ms)
        self._binding = binding

    @property
    def binding(self) -> ZoneBinding:
        return self._binding

    @property
    def zone(self) -> str:
        return self._binding.zone

    def to_datetime(self, tz: datetime.tzinfo | None = None) -> datetime.datetime:
        """Aware datetime on the bound zone's wall clock, or in ``tz`` if given."""
        return epoch_ms_to_datetime(self.epoch_ms, tz or self._binding.tzinfo)

    @property
    def year(self) -> int:
        return self.to_datetime().year

    @property
    def month(self) -> int:
        return self.to_datetime().month

    @property
    def day(self) -> int:
        return self.to_datetime().day

    @property
    def hour(self) -> int:
        return self.to_datetime().hour

    @property
    def minute(self) -> int:
        return self.to_datetime().minute

    @property
    def second(self) -> int:
        return self.to_datetime().second

    @property
    def millisecond(self) -> int:
        return self.to_datetime().microsecond // 1000

    @property
    def weekday(self) -> int:
        """Day of week, Monday is 0."""
        return self.to_datetime().weekday()

    def utcoffset(self) -> datetime.timedelta:
        """Offset from UTC at this instant, east-positive."""
        return datetime.timedelta(minutes=self._binding.utc_offset_minutes(self.epoch_ms))

    def offset_minutes(self) -> int:
        """UTC minus local time in minutes.

        Same sign as JavaScript's ``getTimezoneOffset``: -540 for Asia/Tokyo,
        660 for Pacific/Niue.
        """
        return -self._binding.utc_offset_minutes(self.epoch_ms)

    def _rewrap(self, dt: datetime.datetime) -> ZonedInstant:
        return ZonedInstant(datetime_to_epoch_ms(dt), self._binding)

    def add(self, unit: str, amount: int) -> ZonedInstant:
        """Shift by ``amount`` units (``"hour"``, ``"days"``, ...).

        Sub-day units move by elapsed time; days and larger move the wall
        clock of the bound zone.

        Raises:
            ValueError: If unit is not supported
            InvalidOptionError: If the result falls outside years 1-9999
        """
        unit = _normalize_unit(unit)
        try:
            moved = shift(self.to_datetime(), unit, amount)
        except (OverflowError, ValueError) as e:
            raise InvalidOptionError(
                "Shift leaves the representable date range", option="amount", value=amount
            ) from e
        return self._rewrap(moved)

    def add_minutes(self, amount: int) -> ZonedInstant:
        return self.add("minute", amount)

    def add_hours(self, amount: int) -> ZonedInstant:
        return self.add("hour", amount)

    def add_days(self, amount: int) -> ZonedInstant:
        return self.add("day", amount)

    def add_weeks(self, amount: int) -> ZonedInstant:
        return self.add("week", amount)

    def add_months(self, amount: int) -> ZonedInstant:
        return self.add("month", amount)

    def add_years(self, amount: int) -> ZonedInstant:
        return self.add("year", amount)

    def start_of_day(self) -> ZonedInstant:
        """Midnight of this instant's calendar day in the bound zone."""
        return self._rewrap(start_of_day(self.to_datetime()))

    def in_zone(self, zone: str) -> ZonedInstant:
        """The same instant bound to another zone.

        Raises:
            UnknownZoneError: If the zone is not in the timezone database
        """
        registry = self._binding.registry
        if registry is None:
            raise RuntimeError(f"Binding for {self.zone} is not attached to a registry")
        return registry.bind(zone).instant(self.epoch_ms)

    def isoformat(self, timespec: str = "milliseconds") -> str:
        return self.to_datetime().isoformat(timespec=timespec)

    def strftime(self, fmt: str) -> str:
        return self.to_datetime().strftime(fmt)

    def long_format(self, locale: str = "en") -> str:
        """Long human-readable date and time, e.g. "March 1, 2024 3:04pm".

        Raises:
            InvalidOptionError: If no table exists for locale
        """
        return get_locale_table(locale).format_long(self.to_datetime())

    def __repr__(self) -> str:
        return f"ZonedInstant(epoch_ms={self.epoch_ms}, zone={self.zone!r})"

    def __str__(self) -> str:
        return self.isoformat()

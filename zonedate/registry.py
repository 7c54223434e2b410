"""Cache of timezone bindings keyed by IANA identifier.

Each distinct identifier gets exactly one :class:`ZoneBinding`, created on
first use and kept for the life of the process.
"""

from __future__ import annotations

import datetime
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from .exceptions import InvalidOptionError
from .instant import ZonedInstant
from .timezone_utils import (
    epoch_ms_to_datetime,
    load_zone,
    now_utc,
    utc_offset_minutes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneBinding:
    """A zone identifier bound to its offset rules."""

    zone: str
    tzinfo: datetime.tzinfo
    registry: TimezoneRegistry | None = field(default=None, compare=False, repr=False)

    def utc_offset_minutes(self, epoch_ms: int) -> int:
        """Offset from UTC at ``epoch_ms`` in minutes, east-positive (+540 for Tokyo)."""
        return utc_offset_minutes(self.tzinfo, epoch_ms)

    def localize(self, epoch_ms: int) -> datetime.datetime:
        """Aware datetime for ``epoch_ms`` on this zone's wall clock."""
        return epoch_ms_to_datetime(epoch_ms, self.tzinfo)

    def now(self) -> datetime.datetime:
        """Current time on this zone's wall clock."""
        return now_utc().astimezone(self.tzinfo)

    def instant(self, epoch_ms: int) -> ZonedInstant:
        """Wrap ``epoch_ms`` in an instant bound to this zone."""
        return ZonedInstant(epoch_ms, self)


class TimezoneRegistry:
    """Maps timezone identifiers to cached :class:`ZoneBinding` objects.

    Thread-safe: concurrent first lookups of the same identifier construct a
    single binding.
    """

    def __init__(self, loader: Callable[[str], datetime.tzinfo] = load_zone) -> None:
        """Initialize an empty registry.

        Args:
            loader: Callable returning tzinfo for an identifier; raises
                UnknownZoneError for identifiers it does not know
        """
        self._loader = loader
        self._bindings: dict[str, ZoneBinding] = {}
        self._lock = threading.Lock()

    def bind(self, zone: str) -> ZoneBinding:
        """Return the binding for ``zone``, creating and caching it on first use.

        Raises:
            UnknownZoneError: If the timezone database has no such zone
            InvalidOptionError: If zone is not a non-empty string
        """
        if not isinstance(zone, str) or not zone:
            raise InvalidOptionError("Timezone must be a non-empty string", option="timezone", value=zone)

        binding = self._bindings.get(zone)
        if binding is not None:
            return binding

        with self._lock:
            binding = self._bindings.get(zone)
            if binding is None:
                tzinfo = self._loader(zone)
                binding = ZoneBinding(zone=zone, tzinfo=tzinfo, registry=self)
                self._bindings[zone] = binding
                logger.debug("Created timezone binding for %s", zone)
        return binding

    def preload(self, *zones: str) -> None:
        """Bind several zones up front so lookup errors surface at startup."""
        for zone in zones:
            self.bind(zone)

    def zones(self) -> list[str]:
        """Identifiers currently cached, in creation order."""
        return list(self._bindings)

    def __contains__(self, zone: object) -> bool:
        return isinstance(zone, str) and zone in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self) -> Iterator[str]:
        return iter(self.zones())

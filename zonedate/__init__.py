"""zonedate - timezone-aware creation of dates from natural-language expressions.

Dates are parsed either in a configurable service timezone or in the system
timezone, and the resulting instants stay bound to the zone they were created
for.
"""

__version__ = "0.1.0"

from .exceptions import InvalidOptionError, ParseError, UnknownZoneError, ZonedateError
from .factory import CreateOptions, InstantFactory
from .instant import Instant, ZonedInstant
from .registry import TimezoneRegistry, ZoneBinding
from .service import (
    create_date,
    get_active_zone,
    get_factory,
    reset_factory,
    set_default_localization,
    set_system_timezone,
    set_use_service_timezone_by_default,
)
from .settings import Localization, ServiceSettings, ZonedateSettings, load_settings

__all__ = [
    "CreateOptions",
    "Instant",
    "InstantFactory",
    "InvalidOptionError",
    "Localization",
    "ParseError",
    "ServiceSettings",
    "TimezoneRegistry",
    "UnknownZoneError",
    "ZoneBinding",
    "ZonedInstant",
    "ZonedateError",
    "ZonedateSettings",
    "create_date",
    "get_active_zone",
    "get_factory",
    "load_settings",
    "reset_factory",
    "set_default_localization",
    "set_system_timezone",
    "set_use_service_timezone_by_default",
]

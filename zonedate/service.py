"""Process-wide zonedate API.

A single :class:`~zonedate.factory.InstantFactory` is built lazily from the
loaded configuration and the functions here delegate to it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .factory import InstantFactory, OptionsInput
from .instant import ZonedInstant
from .registry import TimezoneRegistry
from .settings import LocalizationInput, ServiceSettings, load_settings

logger = logging.getLogger(__name__)


def _build_factory() -> InstantFactory:
    config = load_settings()
    registry = TimezoneRegistry()
    registry.preload(*config.preload_timezones)
    factory = InstantFactory(settings=ServiceSettings.from_config(config), registry=registry)
    logger.debug(
        "Zonedate factory ready: locale=%s timezone=%s system=%s",
        config.default_locale,
        config.default_timezone,
        config.system_timezone,
    )
    return factory


# Global factory instance (using module-level variable instead of global statement)
_factory: Optional[InstantFactory] = None


def get_factory() -> InstantFactory:
    """Get global factory instance.

    Returns:
        The process-wide InstantFactory
    """
    if "_factory" not in globals() or globals()["_factory"] is None:
        globals()["_factory"] = _build_factory()
    return globals()["_factory"]


def reset_factory(factory: Optional[InstantFactory] = None) -> None:
    """Replace the global factory; None rebuilds it from configuration on next use."""
    globals()["_factory"] = factory


def create_date(
    value: Any = None,
    locale: Any = None,
    options: OptionsInput = None,
    **option_fields: Any,
) -> ZonedInstant:
    """Create a timezone-bound instant (convenience function)."""
    return get_factory().create(value, locale, options, **option_fields)


def set_default_localization(partial: LocalizationInput = None, **fields: Any) -> None:
    """Overwrite only the supplied fields of the default localization (convenience function)."""
    get_factory().set_default_localization(partial, **fields)


def set_system_timezone(zone: str) -> None:
    """Change the system timezone (convenience function)."""
    get_factory().set_system_timezone(zone)


def set_use_service_timezone_by_default(flag: bool) -> None:
    """Choose the mode used by calls that do not pick one (convenience function)."""
    get_factory().set_use_service_timezone_by_default(flag)


def get_active_zone() -> str:
    """Zone the calendar engine currently parses in (convenience function)."""
    return get_factory().active_zone

"""Creation of timezone-bound instants.

:class:`InstantFactory` ties the pieces together. It normalizes what the
caller passed, resolves locale and timezone through
:class:`~zonedate.settings.ServiceSettings`, runs the calendar engine with the
right zone active, and binds the result to that zone through the
:class:`~zonedate.registry.TimezoneRegistry`.
"""

from __future__ import annotations

import datetime
import logging
import math
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from .context import ContextSwitcher
from .engine import NEW_DATE_INTERNAL, CalendarEngine
from .exceptions import InvalidOptionError
from .instant import Instant, ZonedInstant
from .registry import TimezoneRegistry
from .settings import LocalizationInput, LocalizationOverride, ResolvedLocalization, ServiceSettings
from .timezone_utils import (
    MAX_EPOCH_MS,
    MIN_EPOCH_MS,
    TimeProvider,
    datetime_to_epoch_ms,
    epoch_ms_to_datetime,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Absolute:
    """An input that already names an instant."""

    epoch_ms: int


@dataclass(frozen=True)
class Expression:
    """A free-text date expression for the calendar engine."""

    text: str


@dataclass(frozen=True)
class Empty:
    """No input: the current time."""


DateInput = Union[Absolute, Expression, Empty]


def normalize_input(value: Any) -> DateInput:
    """Classify a caller-supplied date value.

    Instants and datetimes become :class:`Absolute` (naive datetimes are read
    as UTC), strings become :class:`Expression`, numbers are epoch
    milliseconds, and ``None`` is :class:`Empty`.

    Raises:
        InvalidOptionError: For any other type, booleans, or numbers that are
            not finite epoch values within years 1-9999
    """
    if value is None:
        return Empty()
    if isinstance(value, Instant):
        return Absolute(value.epoch_ms)
    if isinstance(value, datetime.datetime):
        return Absolute(datetime_to_epoch_ms(value))
    if isinstance(value, str):
        return Expression(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidOptionError("Epoch value must be finite", option="input", value=value)
        epoch_ms = round(value)
        if not MIN_EPOCH_MS <= epoch_ms <= MAX_EPOCH_MS:
            raise InvalidOptionError(
                "Epoch value outside the representable date range", option="input", value=value
            )
        return Absolute(epoch_ms)
    raise InvalidOptionError("Unsupported date input type", option="input", value=value)


class CreateOptions(BaseModel):
    """Per-call options for :meth:`InstantFactory.create`."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    localization: Optional[LocalizationOverride] = None
    service_timezone: Optional[StrictBool] = Field(default=None, alias="serviceTimezone")


OptionsInput = Union[CreateOptions, Mapping[str, Any], None]


def coerce_options(options: OptionsInput = None, **fields: Any) -> CreateOptions:
    """Build CreateOptions from a model, a mapping and/or keyword fields.

    Raises:
        InvalidOptionError: If keys are unknown or values have the wrong type
    """
    fields = {k: v for k, v in fields.items() if v is not None}
    if isinstance(options, CreateOptions) and not fields:
        return options

    data: dict[str, Any] = {}
    if isinstance(options, CreateOptions):
        data.update(options.model_dump(exclude_none=True))
    elif isinstance(options, Mapping):
        data.update(options)
    elif options is not None:
        raise InvalidOptionError("Options must be a mapping", option="options", value=options)
    data.update(fields)

    try:
        return CreateOptions.model_validate(data)
    except ValidationError as e:
        raise InvalidOptionError(
            "Invalid options",
            option="options",
            value=data,
            details={"errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]},
        ) from e


def _is_options(value: Any) -> bool:
    return isinstance(value, (CreateOptions, Mapping))


class InstantFactory:
    """Creates instants bound to the system or the service timezone.

    Example:
        >>> factory = InstantFactory()
        >>> factory.set_default_localization(locale="ja", timezone="Asia/Tokyo")
        >>> factory.create("今日", service_timezone=True).zone
        'Asia/Tokyo'
    """

    def __init__(
        self,
        settings: Optional[ServiceSettings] = None,
        registry: Optional[TimezoneRegistry] = None,
        engine: Optional[CalendarEngine] = None,
        time_provider: Optional[TimeProvider] = None,
    ) -> None:
        self.settings = settings or ServiceSettings()
        self.registry = registry or TimezoneRegistry()
        self.engine = engine or CalendarEngine()
        self.time_provider = time_provider or TimeProvider()
        self.switcher = ContextSwitcher(default_zone=lambda: self.settings.system_timezone)
        # Epoch that stands in for "now" while re-parsing relative to an instant
        self._reference_epoch: ContextVar[Optional[int]] = ContextVar(
            "zonedate_reference_epoch", default=None
        )

        self.engine.set_option(NEW_DATE_INTERNAL, self._reference_now)

    def _reference_now(self) -> datetime.datetime:
        """Engine hook: "now" on the wall clock of the active parse zone."""
        binding = self.registry.bind(self.switcher.active_zone)
        reference_epoch = self._reference_epoch.get()
        if reference_epoch is not None:
            return epoch_ms_to_datetime(reference_epoch, binding.tzinfo)
        return self.time_provider.now_utc().astimezone(binding.tzinfo)

    @property
    def active_zone(self) -> str:
        """Zone the engine currently parses in (the system timezone outside a switch)."""
        return self.switcher.active_zone

    def set_default_localization(self, partial: LocalizationInput = None, **fields: Any) -> None:
        """Overwrite only the supplied fields of the default localization."""
        self.settings.set_default_localization(partial, **fields)

    def set_system_timezone(self, zone: str) -> None:
        """Change the system timezone.

        Raises:
            UnknownZoneError: If the zone is not in the timezone database
        """
        self.registry.bind(zone)
        self.settings.set_system_timezone(zone)

    def set_use_service_timezone_by_default(self, flag: bool) -> None:
        """Choose the mode for calls that do not pass ``service_timezone``."""
        self.settings.set_use_service_timezone_by_default(flag)

    def create(
        self,
        value: Any = None,
        locale: Any = None,
        options: OptionsInput = None,
        *,
        localization: LocalizationInput = None,
        service_timezone: Optional[bool] = None,
    ) -> ZonedInstant:
        """Create an instant bound to the service or the system timezone.

        Args:
            value: Instant, datetime, epoch milliseconds, date expression, or
                None for now. An options mapping here is taken as ``options``.
            locale: Locale for the expression; beats the options' locale. An
                options mapping here is taken as ``options``.
            options: ``{"localization": {...}, "service_timezone": bool}``
            localization: Same as ``options["localization"]``
            service_timezone: Same as ``options["service_timezone"]``

        Raises:
            ParseError: If the expression is not recognized
            UnknownZoneError: If the chosen timezone does not exist
            InvalidOptionError: If options, locale or input are malformed
        """
        if _is_options(value) and locale is None and options is None:
            value, options = None, value
        if _is_options(locale) and options is None:
            locale, options = None, locale
        if locale is not None and not isinstance(locale, str):
            raise InvalidOptionError("Locale must be a string", option="locale", value=locale)

        date_input = normalize_input(value)
        opts = coerce_options(options, localization=localization, service_timezone=service_timezone)
        resolved = self.settings.resolve(opts.localization, opts.service_timezone)
        if locale:
            resolved = resolved.model_copy(update={"locale": locale})

        return self._create(date_input, resolved)

    def _create(self, date_input: DateInput, resolved: ResolvedLocalization) -> ZonedInstant:
        zone = resolved.parse_zone(self.settings.system_timezone)
        binding = self.registry.bind(zone)

        if isinstance(date_input, Expression):
            if resolved.use_service:
                instant = self.switcher.with_zone(
                    zone, self.engine.parse, date_input.text, resolved.locale, from_utc=False
                )
            else:
                instant = self.engine.parse(date_input.text, resolved.locale, from_utc=True)
            epoch_ms = instant.epoch_ms
        elif isinstance(date_input, Absolute):
            epoch_ms = date_input.epoch_ms
        else:
            epoch_ms = self.time_provider.now_epoch_ms()

        logger.debug(
            "Created %s in %s (%s mode, locale=%s) -> %d",
            date_input,
            zone,
            "service" if resolved.use_service else "system",
            resolved.locale,
            epoch_ms,
        )
        return binding.instant(epoch_ms)

    def now(self, service_timezone: Optional[bool] = None) -> ZonedInstant:
        """Current time, bound like :meth:`create` with no value."""
        return self.create(service_timezone=service_timezone)

    def reparse(
        self,
        instant: ZonedInstant,
        expression: str,
        locale: Optional[str] = None,
        *,
        relative: bool = False,
    ) -> ZonedInstant:
        """Parse ``expression`` on ``instant``'s own zone and bind the result there.

        "tomorrow" re-parsed against an instant bound to Pacific/Niue is Niue's
        tomorrow, whatever the defaults say.

        Args:
            instant: Instant whose zone the expression is parsed in
            expression: Date expression
            locale: Locale of the expression (default: configured locale)
            relative: Resolve relative and periodic forms against ``instant``
                instead of the current time, so "1 hour ago" is an hour
                before ``instant``

        Raises:
            ParseError: If the expression is not recognized
            InvalidOptionError: If the locale is malformed or unsupported
        """
        if locale is not None and not isinstance(locale, str):
            raise InvalidOptionError("Locale must be a string", option="locale", value=locale)

        locale = locale or self.settings.default_localization.locale
        binding = self.registry.bind(instant.zone)
        token = self._reference_epoch.set(instant.epoch_ms if relative else None)
        try:
            parsed = self.switcher.with_zone(
                binding.zone, self.engine.parse, expression, locale, from_utc=False
            )
        finally:
            self._reference_epoch.reset(token)
        return binding.instant(parsed.epoch_ms)

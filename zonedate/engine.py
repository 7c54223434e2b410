"""Calendar engine: turns free-text date expressions into instants.

The engine knows nothing about service or system timezones. Whenever it needs
a reference "now" (for "today", "3 hours ago", or to fill in the missing
fields of "March 1") it calls its ``new_date_internal`` option, a zero-argument
callable returning an aware datetime. Callers redirect that hook to make
parsing happen on another zone's calendar.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from typing import Any

from dateutil import parser as date_parser

from .exceptions import InvalidOptionError, ParseError
from .instant import Instant
from .locales import DEFAULT_LOCALES, LocaleTable, lookup_locale
from .timezone_utils import now_utc, shift, start_of_day

logger = logging.getLogger(__name__)

NEW_DATE_INTERNAL = "new_date_internal"

# A rule returns the resolved datetime, or None when the text is not its form
_Rule = Callable[[LocaleTable, str, datetime.datetime], datetime.datetime | None]


def _match_now(table: LocaleTable, text: str, reference: datetime.datetime) -> datetime.datetime | None:
    if text in table.now_words:
        return reference
    return None


def _match_day(table: LocaleTable, text: str, reference: datetime.datetime) -> datetime.datetime | None:
    offset = table.day_words.get(text)
    if offset is None:
        return None
    return shift(start_of_day(reference), "day", offset)


def _match_relative(table: LocaleTable, text: str, reference: datetime.datetime) -> datetime.datetime | None:
    for pattern, default_direction in table.relative_patterns:
        match = pattern.match(text)
        if not match:
            continue

        unit = table.unit_words.get(match.group("unit"))
        amount = table.parse_number(match.group("num"))
        if unit is None or amount is None:
            continue

        groups = match.groupdict()
        direction = table.direction_words[groups["dir"]] if groups.get("dir") else default_direction
        return shift(reference, unit, amount * direction)
    return None


def _match_weekday(table: LocaleTable, text: str, reference: datetime.datetime) -> datetime.datetime | None:
    match = table.weekday_pattern.match(text)
    if not match:
        return None

    weekday = table.weekday_words.get(match.group("weekday"))
    if weekday is None:
        return None

    direction = table.direction_words[match.group("dir")] if match.group("dir") else 0
    today = start_of_day(reference)
    # Weeks start on Monday
    monday = shift(today, "day", -today.weekday())
    return shift(monday, "day", weekday + 7 * direction)


def _match_period(table: LocaleTable, text: str, reference: datetime.datetime) -> datetime.datetime | None:
    if text in table.period_words:
        unit, amount = table.period_words[text]
        return shift(reference, unit, amount)

    if table.period_pattern is None:
        return None
    match = table.period_pattern.match(text)
    if not match:
        return None

    unit = table.unit_words.get(match.group("unit"))
    if unit is None:
        return None
    return shift(reference, unit, table.direction_words[match.group("dir")])


_RULES: tuple[_Rule, ...] = (_match_now, _match_day, _match_relative, _match_weekday, _match_period)


class CalendarEngine:
    """Parses relative, periodic and absolute date expressions.

    Example:
        >>> engine = CalendarEngine()
        >>> engine.parse("3 hours ago", "en")
        Instant(...)
    """

    def __init__(self, locales: dict[str, LocaleTable] | None = None) -> None:
        self._locales: dict[str, LocaleTable] = dict(locales if locales is not None else DEFAULT_LOCALES)
        self._options: dict[str, Any] = {NEW_DATE_INTERNAL: now_utc}

    def set_option(self, name: str, value: Any) -> None:
        """Set an engine option.

        Only ``"new_date_internal"`` is recognized: a zero-argument callable
        returning the reference "now" as an aware datetime.

        Raises:
            InvalidOptionError: If the option is unknown or the value unusable
        """
        if name != NEW_DATE_INTERNAL:
            raise InvalidOptionError("Unknown engine option", option=name)
        if not callable(value):
            raise InvalidOptionError("Engine option must be callable", option=name, value=value)
        self._options[name] = value

    def get_option(self, name: str) -> Any:
        if name not in self._options:
            raise InvalidOptionError("Unknown engine option", option=name)
        return self._options[name]

    def register_locale(self, table: LocaleTable) -> None:
        """Add or replace the keyword table for ``table.code``."""
        self._locales[table.code] = table

    def has_locale(self, code: str) -> bool:
        try:
            lookup_locale(self._locales, code)
        except InvalidOptionError:
            return False
        return True

    def get_locale(self, code: str) -> LocaleTable:
        """Keyword table for ``code``.

        Raises:
            InvalidOptionError: If the locale is unsupported
        """
        return lookup_locale(self._locales, code)

    def new_date_internal(self) -> datetime.datetime:
        """Reference "now" from the current hook, as an aware datetime."""
        reference = self._options[NEW_DATE_INTERNAL]()
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=datetime.UTC)
        return reference

    def parse(self, expression: str, locale: str = "en", *, from_utc: bool = False) -> Instant:
        """Resolve ``expression`` to an instant.

        Relative and periodic forms are resolved against the reference "now"
        from ``new_date_internal`` and on that datetime's zone. Absolute dates
        without an explicit offset are read as UTC when ``from_utc`` is true,
        otherwise on the reference zone's wall clock.

        Raises:
            ParseError: If the expression is not recognized
            InvalidOptionError: If the locale is unsupported
        """
        table = self.get_locale(locale)
        if not isinstance(expression, str):
            raise ParseError(repr(expression), locale, "expression must be a string")

        text = table.normalize(expression)
        if not text:
            raise ParseError(expression, locale, "empty expression")

        # Keywords match case-insensitively; dateutil gets the text as written
        key = text.casefold()
        reference = self.new_date_internal()
        for rule in _RULES:
            resolved = rule(table, key, reference)
            if resolved is not None:
                logger.debug("Parsed %r (%s) with %s -> %s", expression, locale, rule.__name__, resolved)
                return Instant.from_datetime(resolved)

        resolved = self._parse_absolute(table, text, reference, from_utc, expression, locale)
        logger.debug("Parsed %r (%s) as absolute date -> %s", expression, locale, resolved)
        return Instant.from_datetime(resolved)

    def _parse_absolute(
        self,
        table: LocaleTable,
        text: str,
        reference: datetime.datetime,
        from_utc: bool,
        expression: str,
        locale: str,
    ) -> datetime.datetime:
        # Missing fields come from the reference day, at midnight
        default = start_of_day(reference).replace(tzinfo=None)
        try:
            parsed = date_parser.parse(table.absolute_text(text), default=default)
        except (ValueError, OverflowError) as e:
            raise ParseError(expression, locale, str(e)) from e

        if parsed.tzinfo is None:
            tz = datetime.UTC if from_utc else reference.tzinfo
            parsed = parsed.replace(tzinfo=tz).astimezone(datetime.UTC).astimezone(tz)
        return parsed

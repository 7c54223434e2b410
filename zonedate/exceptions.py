"""Exception hierarchy for zonedate.

Every failure raised by the package derives from :class:`ZonedateError` so
callers can catch the whole family at once. Errors coming from the calendar
engine or the timezone database are surfaced unchanged in meaning and keep the
failing input in ``details`` for diagnostics.
"""

from typing import Any, Optional


class ZonedateError(Exception):
    """Base exception for all zonedate errors.

    Args:
        message: Human-readable error description
        details: Optional dictionary containing additional error context

    Example:
        >>> raise ZonedateError("Date creation failed", {"input": "yesterday-ish"})
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ParseError(ZonedateError):
    """A date expression could not be understood by the calendar engine.

    Raised when:
    - The expression matches no relative, periodic or absolute form
    - dateutil rejects the text or produces an out-of-range date
    - The expression is empty
    """

    def __init__(self, expression: str, locale: Optional[str] = None, reason: Optional[str] = None) -> None:
        self.expression = expression
        self.locale = locale
        details: dict[str, Any] = {"expression": expression}
        if locale:
            details["locale"] = locale
        if reason:
            details["reason"] = reason
        super().__init__("Unrecognized date expression", details)


class UnknownZoneError(ZonedateError):
    """A timezone identifier is absent from the timezone database.

    Not recoverable locally: there is no fallback zone policy.
    """

    def __init__(self, zone: str) -> None:
        self.zone = zone
        super().__init__("Unknown timezone", {"zone": zone})


class InvalidOptionError(ZonedateError):
    """Call options or settings values are malformed.

    Raised when:
    - A locale or timezone is not a string
    - An options mapping contains unknown keys
    - A flag that must be a bool is something else
    - The requested locale has no keyword table
    - The date input has an unsupported type
    """

    def __init__(
        self,
        message: str,
        option: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.option = option
        self.value = value

        error_details = details or {}
        if option:
            error_details["option"] = option
        if value is not None:
            error_details["value"] = repr(value)

        super().__init__(message, error_details)

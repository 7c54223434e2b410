"""Scoped switching of the zone the calendar engine treats as "current".

The calendar engine has no per-call timezone parameter for building its
reference "now"; it asks a hook instead, and the hook reads the active zone
from here. The active zone lives in a ContextVar, so every thread and asyncio
task sees its own value, and restoration uses ContextVar tokens, so nested
switches unwind strictly last-in first-out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContextSwitcher:
    """Holds the active parse zone and switches it for the span of a call."""

    def __init__(self, default_zone: Callable[[], str], name: str = "zonedate_active_zone") -> None:
        """Initialize the switcher.

        Args:
            default_zone: Returns the zone in effect when no switch is active
                (normally the system timezone)
            name: ContextVar name, useful when debugging
        """
        self._default_zone = default_zone
        self._active: ContextVar[str | None] = ContextVar(name, default=None)

    @property
    def active_zone(self) -> str:
        """Zone currently used for parsing."""
        zone = self._active.get()
        if zone is None:
            return self._default_zone()
        return zone

    @property
    def is_switched(self) -> bool:
        """True while inside :meth:`zone` or :meth:`with_zone`."""
        return self._active.get() is not None

    @contextmanager
    def zone(self, zone: str) -> Iterator[str]:
        """Make ``zone`` the active zone inside the ``with`` block.

        Example:
            with switcher.zone("Asia/Tokyo"):
                engine.parse("today")  # Tokyo's today
        """
        token = self._active.set(zone)
        logger.debug("Switched parse zone to %s", zone)
        try:
            yield zone
        finally:
            self._active.reset(token)
            logger.debug("Restored parse zone to %s", self.active_zone)

    def with_zone(self, zone: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``fn(*args, **kwargs)`` with ``zone`` active and return its result.

        The previous zone is restored before returning or re-raising.
        """
        with self.zone(zone):
            return fn(*args, **kwargs)

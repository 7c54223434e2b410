"""Settings management using Pydantic for type validation and configuration.

Two layers live here:

- :class:`ZonedateSettings` loads process configuration from environment
  variables (``ZONEDATE_*``), a ``.env`` file and an optional YAML file.
- :class:`ServiceSettings` holds the runtime defaults (service localization,
  system timezone, default mode) and merges per-call overrides over them.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidOptionError

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"
DEFAULT_TIMEZONE = "GMT"
CONFIG_ENV = "ZONEDATE_CONFIG"


class Localization(BaseModel):
    """Locale and service timezone used to interpret dates."""

    model_config = ConfigDict(frozen=True)

    locale: str = Field(default=DEFAULT_LOCALE, description="Locale code for date expressions")
    timezone: str = Field(default=DEFAULT_TIMEZONE, description="IANA service timezone")


class LocalizationOverride(BaseModel):
    """Partial localization supplied per call or to set_default_localization."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    locale: Optional[StrictStr] = None
    timezone: Optional[StrictStr] = None


class ResolvedLocalization(BaseModel):
    """Effective values for one call after merging overrides over defaults."""

    model_config = ConfigDict(frozen=True)

    locale: str
    timezone: str
    use_service: bool

    def parse_zone(self, system_timezone: str) -> str:
        """Zone the call parses in and binds to."""
        return self.timezone if self.use_service else system_timezone


LocalizationInput = Union[LocalizationOverride, Mapping[str, Any], None]


def coerce_localization(value: LocalizationInput, **fields: Any) -> LocalizationOverride:
    """Build a LocalizationOverride from a model, a mapping and/or keyword fields.

    Raises:
        InvalidOptionError: If keys are unknown or values are not strings
    """
    if isinstance(value, LocalizationOverride) and not fields:
        return value

    data: dict[str, Any] = {}
    if isinstance(value, LocalizationOverride):
        data.update(value.model_dump(exclude_none=True))
    elif isinstance(value, Mapping):
        data.update(value)
    elif value is not None:
        raise InvalidOptionError("Localization must be a mapping", option="localization", value=value)
    data.update(fields)

    try:
        return LocalizationOverride.model_validate(data)
    except ValidationError as e:
        raise InvalidOptionError(
            "Invalid localization",
            option="localization",
            value=data,
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


class ZonedateSettings(BaseSettings):
    """Process configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="ZONEDATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_locale: str = Field(default=DEFAULT_LOCALE, description="Default service locale")
    default_timezone: str = Field(default=DEFAULT_TIMEZONE, description="Default service timezone")
    system_timezone: str = Field(default=DEFAULT_TIMEZONE, description="System timezone")
    use_service_timezone_by_default: bool = Field(
        default=False, description="Parse in the service timezone when a call does not choose"
    )
    preload_timezones: list[str] = Field(
        default_factory=list, description="Zones bound at startup so typos fail early"
    )
    log_level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR")


def _find_config_file() -> Optional[Path]:
    """Find config file: $ZONEDATE_CONFIG, then ./zonedate.yaml, then user config dir."""
    explicit = os.environ.get(CONFIG_ENV)
    if explicit:
        return Path(explicit)

    for candidate in (
        Path.cwd() / "zonedate.yaml",
        Path.home() / ".config" / "zonedate" / "config.yaml",
    ):
        if candidate.exists():
            return candidate
    return None


def _flatten_yaml(config_data: dict[str, Any]) -> dict[str, Any]:
    """Map the sectioned YAML layout onto ZonedateSettings field names."""
    values: dict[str, Any] = {}

    localization = config_data.get("localization") or {}
    if "locale" in localization:
        values["default_locale"] = localization["locale"]
    if "timezone" in localization:
        values["default_timezone"] = localization["timezone"]

    for key in ("system_timezone", "use_service_timezone_by_default", "preload_timezones"):
        if key in config_data:
            values[key] = config_data[key]

    logging_config = config_data.get("logging") or {}
    if "level" in logging_config:
        values["log_level"] = logging_config["level"]

    return values


def _load_yaml_config(config_file: Path) -> dict[str, Any]:
    """Load settings values from YAML; problems are logged and ignored."""
    try:
        with config_file.open(encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load YAML config from %s: %s", config_file, e)
        return {}

    if not config_data:
        return {}
    if not isinstance(config_data, dict):
        logger.warning("Ignoring YAML config %s: top level must be a mapping", config_file)
        return {}
    return _flatten_yaml(config_data)


def load_settings(config_file: Optional[Path] = None) -> ZonedateSettings:
    """Load settings from YAML, .env and environment variables.

    Environment variables beat YAML values, which beat built-in defaults.

    Args:
        config_file: YAML file to read; when omitted the usual locations are searched
    """
    settings = ZonedateSettings()

    config_file = config_file or _find_config_file()
    if config_file is None:
        return settings

    yaml_values = _load_yaml_config(config_file)
    from_yaml = {k: v for k, v in yaml_values.items() if k not in settings.model_fields_set}
    if not from_yaml:
        return settings

    logger.debug("Applying YAML settings from %s: %s", config_file, sorted(from_yaml))
    return ZonedateSettings(**from_yaml)


class ServiceSettings:
    """Runtime defaults for localization, system timezone and default mode."""

    def __init__(
        self,
        default_localization: Optional[Localization] = None,
        system_timezone: str = DEFAULT_TIMEZONE,
        use_service_timezone_by_default: bool = False,
    ) -> None:
        self._default_localization = default_localization or Localization()
        self._system_timezone = system_timezone
        self._use_service_timezone_by_default = use_service_timezone_by_default

    @classmethod
    def from_config(cls, config: ZonedateSettings) -> ServiceSettings:
        """Build runtime settings from loaded configuration."""
        return cls(
            default_localization=Localization(
                locale=config.default_locale, timezone=config.default_timezone
            ),
            system_timezone=config.system_timezone,
            use_service_timezone_by_default=config.use_service_timezone_by_default,
        )

    @property
    def default_localization(self) -> Localization:
        return self._default_localization

    @property
    def system_timezone(self) -> str:
        return self._system_timezone

    @property
    def use_service_timezone_by_default(self) -> bool:
        return self._use_service_timezone_by_default

    def set_default_localization(self, partial: LocalizationInput = None, **fields: Any) -> None:
        """Overwrite only the supplied fields of the default localization.

        Example:
            >>> settings.set_default_localization({"timezone": "Asia/Tokyo"})
            >>> settings.set_default_localization(locale="ja")

        Raises:
            InvalidOptionError: If keys are unknown or values are not strings
        """
        override = coerce_localization(partial, **fields)
        updates = override.model_dump(exclude_none=True)
        self._default_localization = self._default_localization.model_copy(update=updates)
        logger.debug("Default localization is now %s", self._default_localization)

    def set_system_timezone(self, zone: str) -> None:
        if not isinstance(zone, str) or not zone:
            raise InvalidOptionError("Timezone must be a non-empty string", option="timezone", value=zone)
        self._system_timezone = zone
        logger.debug("System timezone is now %s", zone)

    def set_use_service_timezone_by_default(self, flag: bool) -> None:
        if not isinstance(flag, bool):
            raise InvalidOptionError(
                "use_service_timezone_by_default must be a bool", option="service_timezone", value=flag
            )
        self._use_service_timezone_by_default = flag

    def resolve(
        self,
        override: LocalizationInput = None,
        use_service_timezone: Optional[bool] = None,
    ) -> ResolvedLocalization:
        """Merge per-call values over the current defaults.

        Per-call values win when present; empty strings count as absent.

        Raises:
            InvalidOptionError: If the override is malformed
        """
        override = coerce_localization(override)
        defaults = self._default_localization

        if use_service_timezone is None:
            use_service_timezone = self._use_service_timezone_by_default
        elif not isinstance(use_service_timezone, bool):
            raise InvalidOptionError(
                "service_timezone must be a bool", option="service_timezone", value=use_service_timezone
            )

        return ResolvedLocalization(
            locale=override.locale or defaults.locale,
            timezone=override.timezone or defaults.timezone,
            use_service=use_service_timezone,
        )

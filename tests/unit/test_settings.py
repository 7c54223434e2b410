"""Tests for configuration loading and ServiceSettings."""

import logging

import pytest

from zonedate.exceptions import InvalidOptionError
from zonedate.settings import (
    Localization,
    LocalizationOverride,
    ServiceSettings,
    ZonedateSettings,
    coerce_localization,
    load_settings,
)

pytestmark = pytest.mark.unit


class TestZonedateSettings:
    """Environment-driven configuration."""

    def test_defaults(self):
        settings = ZonedateSettings()

        assert settings.default_locale == "en"
        assert settings.default_timezone == "GMT"
        assert settings.system_timezone == "GMT"
        assert settings.use_service_timezone_by_default is False
        assert settings.preload_timezones == []
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ZONEDATE_DEFAULT_LOCALE", "ja")
        monkeypatch.setenv("ZONEDATE_DEFAULT_TIMEZONE", "Asia/Tokyo")
        monkeypatch.setenv("ZONEDATE_USE_SERVICE_TIMEZONE_BY_DEFAULT", "true")
        monkeypatch.setenv("ZONEDATE_PRELOAD_TIMEZONES", '["Asia/Tokyo", "GMT"]')

        settings = ZonedateSettings()

        assert settings.default_locale == "ja"
        assert settings.default_timezone == "Asia/Tokyo"
        assert settings.use_service_timezone_by_default is True
        assert settings.preload_timezones == ["Asia/Tokyo", "GMT"]

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("ZONEDATE_SYSTEM_TIMEZONE=Pacific/Niue\n")

        assert ZonedateSettings().system_timezone == "Pacific/Niue"


class TestLoadSettings:
    """YAML configuration with environment precedence."""

    def test_no_config_file_returns_defaults(self):
        assert load_settings() == ZonedateSettings()

    def test_yaml_values_applied(self, tmp_path):
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(
            "localization:\n"
            "  locale: ja\n"
            "  timezone: Asia/Tokyo\n"
            "system_timezone: Pacific/Niue\n"
            "use_service_timezone_by_default: true\n"
            "preload_timezones: [Asia/Tokyo]\n"
            "logging:\n"
            "  level: DEBUG\n"
        )

        settings = load_settings(config_file)

        assert settings.default_locale == "ja"
        assert settings.default_timezone == "Asia/Tokyo"
        assert settings.system_timezone == "Pacific/Niue"
        assert settings.use_service_timezone_by_default is True
        assert settings.preload_timezones == ["Asia/Tokyo"]
        assert settings.log_level == "DEBUG"

    def test_environment_beats_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("localization:\n  timezone: Asia/Tokyo\n  locale: ja\n")
        monkeypatch.setenv("ZONEDATE_DEFAULT_TIMEZONE", "Europe/Berlin")

        settings = load_settings(config_file)

        assert settings.default_timezone == "Europe/Berlin"
        assert settings.default_locale == "ja"

    def test_config_env_var_selects_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "elsewhere.yaml"
        config_file.write_text("system_timezone: Asia/Tokyo\n")
        monkeypatch.setenv("ZONEDATE_CONFIG", str(config_file))

        assert load_settings().system_timezone == "Asia/Tokyo"

    def test_working_directory_file_found(self, tmp_path):
        (tmp_path / "zonedate.yaml").write_text("system_timezone: Asia/Tokyo\n")

        assert load_settings().system_timezone == "Asia/Tokyo"

    def test_user_config_dir_file_found(self, tmp_path):
        config_dir = tmp_path / ".config" / "zonedate"
        config_dir.mkdir(parents=True)
        (config_dir / "config.yaml").write_text("system_timezone: Pacific/Niue\n")

        assert load_settings().system_timezone == "Pacific/Niue"

    def test_malformed_yaml_is_ignored_with_warning(self, tmp_path, caplog):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("localization: [unclosed\n")

        with caplog.at_level(logging.WARNING, logger="zonedate.settings"):
            settings = load_settings(config_file)

        assert settings == ZonedateSettings()
        assert "Could not load YAML config" in caplog.text

    def test_missing_file_is_ignored(self, tmp_path):
        assert load_settings(tmp_path / "missing.yaml") == ZonedateSettings()

    def test_non_mapping_yaml_is_ignored(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        assert load_settings(config_file) == ZonedateSettings()


class TestCoerceLocalization:
    def test_mapping(self):
        assert coerce_localization({"locale": "ja"}) == LocalizationOverride(locale="ja")

    def test_keyword_fields_merge_over_mapping(self):
        override = coerce_localization({"locale": "ja"}, timezone="Asia/Tokyo")

        assert override == LocalizationOverride(locale="ja", timezone="Asia/Tokyo")

    def test_model_passes_through(self):
        override = LocalizationOverride(timezone="GMT")

        assert coerce_localization(override) is override

    @pytest.mark.parametrize(
        "value",
        [{"locale": 5}, {"zone": "Asia/Tokyo"}, "ja", ["ja"]],
    )
    def test_invalid_values_raise(self, value):
        with pytest.raises(InvalidOptionError):
            coerce_localization(value)


class TestServiceSettings:
    """Runtime defaults and per-call merging."""

    def test_initial_defaults(self):
        settings = ServiceSettings()

        assert settings.default_localization == Localization(locale="en", timezone="GMT")
        assert settings.system_timezone == "GMT"
        assert settings.use_service_timezone_by_default is False

    def test_from_config(self):
        config = ZonedateSettings(
            default_locale="ja",
            default_timezone="Asia/Tokyo",
            system_timezone="Pacific/Niue",
            use_service_timezone_by_default=True,
        )

        settings = ServiceSettings.from_config(config)

        assert settings.default_localization == Localization(locale="ja", timezone="Asia/Tokyo")
        assert settings.system_timezone == "Pacific/Niue"
        assert settings.use_service_timezone_by_default is True

    def test_partial_update_keeps_other_fields(self):
        settings = ServiceSettings()

        settings.set_default_localization({"timezone": "Asia/Tokyo"})
        settings.set_default_localization(locale="ja")

        assert settings.default_localization == Localization(locale="ja", timezone="Asia/Tokyo")

    def test_empty_update_changes_nothing(self):
        settings = ServiceSettings()

        settings.set_default_localization({})

        assert settings.default_localization == Localization()

    def test_invalid_update_leaves_defaults_untouched(self):
        settings = ServiceSettings()

        with pytest.raises(InvalidOptionError):
            settings.set_default_localization({"timezone": 9})

        assert settings.default_localization == Localization()

    @pytest.mark.parametrize("zone", ["", None, 3])
    def test_set_system_timezone_rejects_non_strings(self, zone):
        with pytest.raises(InvalidOptionError):
            ServiceSettings().set_system_timezone(zone)

    def test_set_use_service_timezone_by_default_requires_bool(self):
        settings = ServiceSettings()

        settings.set_use_service_timezone_by_default(True)
        assert settings.use_service_timezone_by_default is True

        with pytest.raises(InvalidOptionError):
            settings.set_use_service_timezone_by_default("yes")

    def test_resolve_uses_defaults(self):
        resolved = ServiceSettings().resolve()

        assert (resolved.locale, resolved.timezone, resolved.use_service) == ("en", "GMT", False)
        assert resolved.parse_zone("Pacific/Niue") == "Pacific/Niue"

    def test_resolve_override_wins(self):
        settings = ServiceSettings()
        settings.set_default_localization(locale="ja", timezone="Asia/Tokyo")

        resolved = settings.resolve({"timezone": "Pacific/Niue"}, use_service_timezone=True)

        assert (resolved.locale, resolved.timezone, resolved.use_service) == ("ja", "Pacific/Niue", True)
        assert resolved.parse_zone("GMT") == "Pacific/Niue"

    def test_resolve_empty_strings_fall_back(self):
        settings = ServiceSettings()
        settings.set_default_localization(timezone="Asia/Tokyo")

        resolved = settings.resolve({"locale": "", "timezone": ""})

        assert (resolved.locale, resolved.timezone) == ("en", "Asia/Tokyo")

    def test_resolve_mode_default(self):
        settings = ServiceSettings(use_service_timezone_by_default=True)

        assert settings.resolve().use_service is True
        assert settings.resolve(use_service_timezone=False).use_service is False

    def test_resolve_rejects_non_bool_mode(self):
        with pytest.raises(InvalidOptionError):
            ServiceSettings().resolve(use_service_timezone=1)

"""Unit tests for zonedate.__main__ module.

Tests cover CLI argument parsing, output formats and error exit codes.
"""

from __future__ import annotations

import logging

import pytest

from zonedate.__main__ import _create_parser, main

pytestmark = pytest.mark.unit

FROZEN = "2024-03-01T10:00:00Z"


@pytest.fixture
def root_level():
    """Put the root logger level back after main() reconfigures it."""
    root = logging.getLogger()
    saved = root.level
    yield root
    root.setLevel(saved)


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_create_parser_when_called_then_returns_parser(self) -> None:
        parser = _create_parser()

        assert parser.prog == "zonedate"
        assert "timezone" in parser.description

    def test_create_parser_when_no_args_then_defaults(self) -> None:
        args = _create_parser().parse_args([])

        assert args.expression is None
        assert args.locale is None
        assert args.service_timezone is None
        assert args.format == "iso"
        assert args.debug is False

    def test_create_parser_when_service_flag_then_true(self) -> None:
        assert _create_parser().parse_args(["--service"]).service_timezone is True
        assert _create_parser().parse_args(["--system"]).service_timezone is False

    def test_create_parser_when_both_modes_then_raises_error(self) -> None:
        with pytest.raises(SystemExit):
            _create_parser().parse_args(["--service", "--system"])

    def test_create_parser_when_invalid_format_then_raises_error(self) -> None:
        with pytest.raises(SystemExit):
            _create_parser().parse_args(["--format", "rfc"])


class TestMain:
    """Tests for main entry point."""

    def test_main_when_expression_given_then_prints_iso(
        self, freeze_time, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)

        with pytest.raises(SystemExit) as exc_info:
            main(["today"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "2024-03-01T00:00:00.000+00:00"

    def test_main_when_service_timezone_then_binds_there(
        self, freeze_time, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)

        with pytest.raises(SystemExit) as exc_info:
            main(["今日", "--locale", "ja", "--service", "--timezone", "Asia/Tokyo"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "2024-03-01T00:00:00.000+09:00"

    def test_main_when_epoch_format_then_prints_milliseconds(
        self, freeze_time, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)

        with pytest.raises(SystemExit):
            main(["--format", "epoch"])

        assert capsys.readouterr().out.strip() == "1709287200000"

    def test_main_when_long_format_then_prints_long_date(
        self, freeze_time, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)

        with pytest.raises(SystemExit):
            main(["1 hour ago", "--format", "long", "--system-timezone", "Asia/Tokyo"])

        assert capsys.readouterr().out.strip() == "March 1, 2024 6:00pm"

    def test_main_when_config_file_given_then_uses_it(
        self, freeze_time, tmp_path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)
        config_file = tmp_path / "cli.yaml"
        config_file.write_text("system_timezone: Pacific/Niue\n")

        with pytest.raises(SystemExit):
            main(["now", "--config", str(config_file)])

        assert capsys.readouterr().out.strip() == "2024-02-29T23:00:00.000-11:00"

    def test_main_when_config_sets_log_level_then_root_uses_it(
        self, freeze_time, tmp_path, root_level, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)
        config_file = tmp_path / "cli.yaml"
        config_file.write_text("logging:\n  level: WARNING\n")

        with pytest.raises(SystemExit) as exc_info:
            main(["now", "--config", str(config_file)])

        assert exc_info.value.code == 0
        assert root_level.level == logging.WARNING

    def test_main_when_no_level_configured_then_debug_flag_applies(
        self, freeze_time, root_level, capsys: pytest.CaptureFixture[str]
    ) -> None:
        freeze_time(FROZEN)

        with pytest.raises(SystemExit):
            main(["now", "--debug"])

        assert root_level.level == logging.DEBUG

    def test_main_when_parse_fails_then_exits_two(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["soonish"])

        assert exc_info.value.code == 2
        assert "Unrecognized date expression" in capsys.readouterr().err

    def test_main_when_zone_unknown_then_exits_two(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["today", "--service", "--timezone", "Not/AZone"])

        assert exc_info.value.code == 2
        assert "Unknown timezone" in capsys.readouterr().err

    def test_main_when_long_format_locale_unknown_then_exits_two(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--format", "long", "--locale", "xx"])

        assert exc_info.value.code == 2

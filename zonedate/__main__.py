"""Command-line entry for zonedate.

Parses one date expression and prints the resulting instant:

    python -m zonedate "tomorrow" --service --timezone Asia/Tokyo
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn, Optional

from .exceptions import ZonedateError
from .factory import InstantFactory
from .logging_setup import configure_logging
from .settings import ServiceSettings, ZonedateSettings, load_settings


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the zonedate CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="zonedate",
        description="zonedate - timezone-aware natural-language date parsing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m zonedate                                   # Current time in the system timezone
  python -m zonedate "3 hours ago"                     # Relative expression
  python -m zonedate 今日 --locale ja --service --timezone Asia/Tokyo
  python -m zonedate tomorrow --format epoch           # Epoch milliseconds
        """,
    )

    parser.add_argument(
        "expression",
        nargs="?",
        help="Date expression to parse (default: now)",
    )
    parser.add_argument(
        "--locale",
        metavar="LOCALE",
        help="Locale of the expression, e.g. en or ja (default: configured locale)",
    )
    parser.add_argument(
        "--timezone",
        metavar="ZONE",
        help="Service timezone for this call (default: configured timezone)",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--service",
        dest="service_timezone",
        action="store_const",
        const=True,
        help="Parse and bind in the service timezone",
    )
    mode.add_argument(
        "--system",
        dest="service_timezone",
        action="store_const",
        const=False,
        help="Parse and bind in the system timezone",
    )

    parser.add_argument(
        "--system-timezone",
        metavar="ZONE",
        help="System timezone (default: from ZONEDATE_SYSTEM_TIMEZONE or config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="YAML configuration file (default: ZONEDATE_CONFIG, ./zonedate.yaml)",
    )
    parser.add_argument(
        "--format",
        choices=("iso", "long", "epoch"),
        default="iso",
        help="Output format (default: iso)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _build_factory(args: argparse.Namespace, config: ZonedateSettings) -> InstantFactory:
    factory = InstantFactory(settings=ServiceSettings.from_config(config))
    factory.registry.preload(*config.preload_timezones)
    if args.system_timezone:
        factory.set_system_timezone(args.system_timezone)
    return factory


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the zonedate CLI.

    Exits 0 after printing the instant, 2 when the date cannot be created.
    """
    parser = _create_parser()
    args = parser.parse_args(argv)
    config = load_settings(args.config)
    # Only an explicitly configured level overrides the --debug default
    log_level = config.log_level if "log_level" in config.model_fields_set else None
    configure_logging(debug_mode=args.debug, log_level=log_level)

    try:
        factory = _build_factory(args, config)
        localization = {"timezone": args.timezone} if args.timezone else None
        instant = factory.create(
            args.expression,
            args.locale,
            localization=localization,
            service_timezone=args.service_timezone,
        )
        if args.format == "epoch":
            output = str(instant.epoch_ms)
        elif args.format == "long":
            output = instant.long_format(args.locale or factory.settings.default_localization.locale)
        else:
            output = instant.isoformat()
    except ZonedateError as exc:
        print(f"zonedate: {exc}", file=sys.stderr)
        sys.exit(2)

    print(output)
    sys.exit(0)


if __name__ == "__main__":
    main()

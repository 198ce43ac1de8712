"""Command-line entry for masstimes.

Resolves a file of event definitions and prints the instances as JSON.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser
from pydantic import TypeAdapter, ValidationError

from . import _init_logging
from .config_loader import apply_env_overrides, load_config, with_overrides
from .definitions_loader import load_definitions
from .exceptions import MassTimesError
from .logging_config import configure_logging
from .models import ResolutionWindow, ResolvedInstance
from .resolver import get_upcoming_events, get_upcoming_masses
from .timezone_utils import ensure_timezone_aware, now_utc

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOAD_ERROR = 2

_instances_adapter = TypeAdapter(list[ResolvedInstance])


def _iso_datetime(value: str) -> datetime:
    """argparse type: ISO 8601 date or datetime, naive values taken as UTC."""
    try:
        return ensure_timezone_aware(date_parser.isoparse(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 datetime: {value!r}") from e


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the masstimes CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="masstimes",
        description="Resolve recurring service schedules into concrete occurrences",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  masstimes parish.yaml                              # Next 30 days, all services
  masstimes parish.yaml --masses --language la       # Latin Masses only
  masstimes parish.yaml --from 2025-03-10 --to 2025-03-24
        """,
    )
    parser.add_argument("definitions", help="YAML or JSON file of event definitions")
    parser.add_argument("--from", dest="start", type=_iso_datetime, metavar="ISO",
                        help="Window start (default: now)")
    parser.add_argument("--to", dest="end", type=_iso_datetime, metavar="ISO",
                        help="Window end (default: start + --days)")
    parser.add_argument("--days", type=int, metavar="N", help="Window length in days (default: 30)")
    parser.add_argument("--limit", type=int, metavar="N",
                        help="Maximum instances per recurring definition (default: 500)")
    parser.add_argument("--category", action="append", metavar="URI",
                        help="Required service category (repeatable)")
    parser.add_argument("--language", action="append", metavar="TAG",
                        help="Required language tag (repeatable)")
    parser.add_argument("--include-uncategorized", action="store_true", default=None,
                        help="Keep definitions without a category")
    parser.add_argument("--include-language-unset", action="store_true", default=None,
                        help="Keep definitions without a language")
    parser.add_argument("--masses", action="store_true",
                        help="Only Mass (and uncategorized) services")
    parser.add_argument("--config", metavar="PATH", help="Config file (default: ~/.config/masstimes/config.yaml)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run the masstimes CLI and return the process exit code."""
    args = _create_parser().parse_args(argv)
    _init_logging("DEBUG" if args.debug else None)

    try:
        cfg = apply_env_overrides(load_config(args.config))
        cfg = with_overrides(
            cfg,
            window_days=args.days,
            limit=args.limit,
            categories=args.category,
            languages=args.language,
            include_uncategorized=args.include_uncategorized,
            include_language_unset=args.include_language_unset,
        )
        configure_logging(debug_mode=args.debug, log_level=cfg.log_level)

        definitions = load_definitions(args.definitions)

        start = args.start or now_utc()
        if args.end is not None:
            window = ResolutionWindow(from_=start, to=args.end, limit=cfg.limit)
        else:
            window = cfg.to_window(start)
    except (MassTimesError, ValidationError) as e:
        logger.error("%s", e)
        print(f"masstimes: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    resolve = get_upcoming_masses if args.masses else get_upcoming_events
    instances = resolve(definitions, window, cfg.to_criteria())

    sys.stdout.write(_instances_adapter.dump_json(instances, indent=2).decode("utf-8"))
    sys.stdout.write("\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

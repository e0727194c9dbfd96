import argparse
import logging
import sys
from datetime import date, datetime
from typing import List, Optional

from prayer_engine.core.app import LOG_FORMAT, EngineApp
from prayer_engine.locations.resolver import LocationResolver
from prayer_engine.prayer.base import PRAYER_NAMES
from prayer_engine.prayer.service import PrayerTimeService
from prayer_engine.schedule.export import render_sql, write_sql
from prayer_engine.schedule.service import save_schedule

logger = logging.getLogger(__name__)


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def _parse_date(text: str) -> date:
    return datetime.strptime(text, "%Y-%m-%d").date()


def _print_location(location) -> None:
    print(
        f"{location.id}\t{location.name}\t{location.country_code}\t"
        f"{location.latitude}, {location.longitude}\tfixed={location.has_fixed_times}\t"
        f"depends_on={location.depends_on_id}"
    )


def cmd_times(app: EngineApp, args) -> int:
    day = args.date or date.today()
    timezone = args.timezone if args.timezone is not None else app.timezone
    if args.location:
        location = app.resolver.resolve(args.location, args.lat or 0.0, args.lng or 0.0)
        if location is None:
            logger.error(f"Location not found: {args.location}")
            return 1
    elif args.lat is not None and args.lng is not None:
        location = LocationResolver.ad_hoc(f"{args.lat},{args.lng}", args.lat, args.lng)
    else:
        logger.error("Provide --location or both --lat and --lng")
        return 2

    service = PrayerTimeService(app.store, app.calculator)
    result = service.get_prayer_times(location, day, timezone)
    if result is None:
        logger.error(f"Prayer times unavailable for {location.name} on {day}")
        return 1

    print(f"{location.name} ({location.latitude}, {location.longitude}) {day.isoformat()} [{service.source_for(location)}]")
    times = result.as_strings()
    for name in PRAYER_NAMES:
        print(f"  {name.capitalize():<8} {times[name]}")
    return 0


def cmd_search(app: EngineApp, args) -> int:
    results = app.resolver.search(args.query, limit=args.limit)
    for location in results:
        _print_location(location)
    if not results:
        logger.warning(f"No location starts with {args.query!r}")
        return 1
    return 0


def cmd_nearest(app: EngineApp, args) -> int:
    location = app.resolver.find_nearest(args.lat, args.lng)
    if location is None:
        logger.error("Location dataset is empty")
        return 1
    _print_location(location)
    return 0


def cmd_schedule(app: EngineApp, args) -> int:
    dates = (args.start, args.end) if args.start and args.end else app.config.schedule_dates()
    if not dates:
        logger.error("Schedule dates missing: pass --start/--end or set schedule.start/schedule.end")
        return 2
    start, end = dates

    targets = app.schedule_targets()
    if not targets:
        logger.error("No schedule targets configured (schedule.targets)")
        return 2

    composer = app.composer()
    rows, diagnostics = composer.build_schedule(targets, start, end)

    output = args.output or app.config.get_section("schedule").get("output") or "ramadan_schedule.sql"
    write_sql(output, render_sql(rows, diagnostics, start, end, composer.timezone, app.attribute))

    if args.save:
        saved = save_schedule(rows, app.session_factory)
        logger.info(f"Saved {saved} schedule rows to the database")

    logger.info(f"Generated: {output}")
    logger.info(f"Total INSERT rows: {diagnostics.total_rows}")
    logger.info(f"  Fixed (from DB): {diagnostics.fixed_rows}")
    logger.info(f"  Calculated:      {diagnostics.computed_rows}")
    logger.info(f"Locations processed: {diagnostics.locations_processed}/{diagnostics.locations_total}")
    if diagnostics.skipped_locations:
        logger.warning(f"Skipped locations: {', '.join(diagnostics.skipped_locations)}")
    for code, days in diagnostics.skipped_dates.items():
        logger.warning(f"Skipped dates for {code}: {', '.join(d.isoformat() for d in days)}")
    logger.info(f"Date range: {start.isoformat()} - {end.isoformat()} ({(end - start).days + 1} days)")
    return 0


def cmd_serve(app: EngineApp, args) -> int:
    from prayer_engine.api.server import run_api_server
    run_api_server(app)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Prayer time calculation and schedule generation')
    parser.add_argument('--config',
                        help='Path to config file (default: ./config.yaml)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    times = subparsers.add_parser('times', help='Prayer times for one location and date')
    times.add_argument('--location', help='Location name (prefix, case-insensitive)')
    times.add_argument('--lat', type=float)
    times.add_argument('--lng', type=float)
    times.add_argument('--date', type=_parse_date, help='YYYY-MM-DD (default: today)')
    times.add_argument('--timezone', type=float, help='UTC offset in hours (default: config / system)')
    times.set_defaults(func=cmd_times)

    search = subparsers.add_parser('search', help='Search locations by name prefix')
    search.add_argument('query')
    search.add_argument('--limit', type=int, default=20)
    search.set_defaults(func=cmd_search)

    nearest = subparsers.add_parser('nearest', help='Nearest location to coordinates')
    nearest.add_argument('lat', type=float)
    nearest.add_argument('lng', type=float)
    nearest.set_defaults(func=cmd_nearest)

    schedule = subparsers.add_parser('schedule', help='Generate the schedule SQL for configured targets')
    schedule.add_argument('--start', type=_parse_date)
    schedule.add_argument('--end', type=_parse_date)
    schedule.add_argument('--output', help='SQL output file (default: schedule.output)')
    schedule.add_argument('--save', action='store_true', help='Also store rows in the database')
    schedule.set_defaults(func=cmd_schedule)

    serve = subparsers.add_parser('serve', help='Run the HTTP API')
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    setup_basic_logging()

    args = build_parser().parse_args(argv)
    config_path = args.config if args.config else "config.yaml"

    try:
        app = EngineApp(config_path=config_path)
        return args.func(app, args)
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""OpenTimeline - render timelines of dated entities.

Usage:
    python main.py render --db PATH TIMELINE   # Print a timeline in date order
    python main.py check --db PATH             # Report cycles and bad expressions
"""

import argparse
import logging
import sys
import time

from opentimeline.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _open_database(db_path: str | None):
    """Open the timeline database given on the command line or in settings."""
    from opentimeline.memory.timeline_database import TimelineDatabase
    from opentimeline.settings import Settings

    settings = Settings.load()
    path = db_path or settings.database_path
    logger.info("Opening timeline database: %s", path)
    return settings, TimelineDatabase(path)


def run_render(db_path: str | None, timeline_ref: str) -> int:
    """Print the resolved entities of one timeline.

    Args:
        db_path: Database file, or None to use the configured one.
        timeline_ref: Timeline ID or name.

    Returns:
        Process exit code.
    """
    from opentimeline.services import TimelineService
    from opentimeline.utils.exceptions import ResolutionError

    settings, db = _open_database(db_path)
    with db:
        timeline = db.get_timeline(timeline_ref) or db.get_timeline_by_name(timeline_ref)
        root_id = timeline.id if timeline else timeline_ref

        service = TimelineService(settings, db)
        try:
            resolved = service.resolve(root_id)
        except ResolutionError as e:
            logger.error("Could not render timeline %s: %s", timeline_ref, e)
            print(f"Error: {e}", file=sys.stderr)
            return 1

    print(resolved.timeline.name)
    print("-" * 40)
    for entity in resolved.entities:
        when = entity.start.long_format()
        if entity.end is not None:
            when = f"{when} - {entity.end.long_format()}"
        print(f"{when:<28} {entity.name}")
    for warning in resolved.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    return 0


def run_check(db_path: str | None) -> int:
    """Print every subtimeline cycle and malformed expression in the database.

    Returns:
        0 when the data is clean, 1 otherwise.
    """
    from opentimeline.services import TimelineService

    settings, db = _open_database(db_path)
    with db:
        report = TimelineService(settings, db).check_integrity()
        names = {timeline.id: timeline.name for timeline in db.list_timelines()}

    if report.ok:
        print("No problems found.")
        return 0

    for cycle_hash, cycle in report.cycles.items():
        path = " -> ".join(names.get(tid, tid) for tid in [*cycle, cycle[0]])
        print(f"Cycle [{cycle_hash}]: {path}")
    for timeline_id, error in report.parse_errors.items():
        print(f"Expression in '{names.get(timeline_id, timeline_id)}': {error}")
    return 1


def main() -> None:
    """Main entry point."""
    t0 = time.perf_counter()
    parser = argparse.ArgumentParser(description="OpenTimeline - timeline resolution engine")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default="none",
        help="Log file path ('default' for logs/opentimeline.log, default: none)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="Print a timeline in date order")
    render_parser.add_argument("--db", type=str, metavar="PATH", help="SQLite database file")
    render_parser.add_argument("timeline", help="Timeline ID or name")

    check_parser = subparsers.add_parser("check", help="Report cycles and malformed expressions")
    check_parser.add_argument("--db", type=str, metavar="PATH", help="SQLite database file")

    args = parser.parse_args()

    log_file = None if args.log_file.lower() == "none" else args.log_file
    setup_logging(level=args.log_level, log_file=log_file)

    if args.command == "render":
        code = run_render(args.db, args.timeline)
    else:
        code = run_check(args.db)

    logger.info("Finished %s in %.2fs", args.command, time.perf_counter() - t0)
    sys.exit(code)


if __name__ == "__main__":
    main()

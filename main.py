from __future__ import annotations

import argparse
import logging
from datetime import date

from calsync.config import get_settings
from calsync.errors import CalsyncError, ReconciliationError
from calsync.gcal import GoogleCalendarStore, build_service
from calsync.loader import LocalEventLoader
from calsync.models import ActionType
from calsync.reconcile import CalendarReconciliation
from calsync.release_sync import run_release_sync


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync release and call YAML files to Google Calendar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    reconcile = subparsers.add_parser("reconcile", help="Reconcile local event files with Google Calendar")
    reconcile.add_argument("--start", type=date.fromisoformat, default=None, help="Start date YYYY-MM-DD")
    reconcile.add_argument("--end", type=date.fromisoformat, default=None, help="End date YYYY-MM-DD")
    reconcile.add_argument("--dry-run", action="store_true", help="Show actions without modifying calendars")

    subparsers.add_parser("check-format", help="Validate every release and call file")
    subparsers.add_parser("release-sync", help="Generate release files for new platform versions")

    args = parser.parse_args(argv)
    if args.command == "reconcile":
        if (args.start is None) != (args.end is None):
            parser.error("--start and --end must be given together")
        if args.start and args.start > args.end:
            parser.error("--start must not be after --end")
    return args


def _print_summary(actions, executed: int, dry_run: bool) -> None:
    counts = {action_type: 0 for action_type in ActionType}
    for action in actions:
        counts[action.type] += 1
    details = ", ".join(f"{counts[t]} {t.value.lower()}" for t in ActionType)
    if dry_run:
        logging.info("Planned %d action(s) [dry run, nothing executed]: %s", len(actions), details)
    else:
        logging.info("Planned %d action(s), executed %d: %s", len(actions), executed, details)


def run_reconcile(args, settings) -> int:
    service = build_service(settings.google_client_secrets, settings.google_token_file)
    reconciliation = CalendarReconciliation(settings, GoogleCalendarStore(service))
    try:
        if args.start and not args.dry_run:
            actions = reconciliation.reconcile_window(args.start, args.end)
        elif args.start:
            actions = reconciliation.reconcile_both(args.start, args.end, dry_run=True)
        else:
            actions = reconciliation.reconcile(dry_run=args.dry_run)
    except ReconciliationError as exc:
        if exc.actions:
            _print_summary(exc.actions, reconciliation.executed, args.dry_run)
        logging.error("%s", exc)
        return 1
    _print_summary(actions, reconciliation.executed, args.dry_run)
    return 0


def run_check_format(settings) -> int:
    errors = LocalEventLoader(settings.releases_dir, settings.calls_dir).check_format()
    for error in errors:
        logging.error("Invalid event file %s", error)
    return 1 if errors else 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    settings = get_settings()
    try:
        if args.command == "reconcile":
            return run_reconcile(args, settings)
        if args.command == "check-format":
            return run_check_format(settings)
        if args.command == "release-sync":
            run_release_sync(settings.releases_dir)
            return 0
    except CalsyncError as exc:
        logging.error("%s", exc)
        return 1
    except Exception as exc:
        logging.exception("Unexpected error during %s: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

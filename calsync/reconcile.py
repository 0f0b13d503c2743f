"""Reconciliation of local event files against Google Calendar.

Each calendar is processed in two phases:

1. analysis: compare local and remote events and decide the actions;
2. execution: apply the actions one by one against the remote store.

Remote state is read once, before analysis. Changes made to the calendar by
someone else between listing and execution are not detected.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from .comparator import DefaultEventComparator, EventComparator
from .config import CALLS, RELEASES, Settings, reconciliation_window, resolve_calendar_id
from .convert import to_gcal_body
from .errors import CalsyncError, ReconciliationError
from .loader import LocalEventLoader
from .models import ActionType, Event, ReconciliationAction, RemoteEvent
from .utils import event_key, filter_by_date_range, is_managed_by_us, remote_event_key


class CalendarReconciliation:
    def __init__(
        self,
        settings: Settings,
        store,
        loader: Optional[LocalEventLoader] = None,
        comparator: Optional[EventComparator] = None,
    ):
        self.settings = settings
        self.store = store
        self.loader = loader or LocalEventLoader(settings.releases_dir, settings.calls_dir)
        self.comparator = comparator or DefaultEventComparator()
        # actions applied successfully since the last two-calendar run started
        self.executed = 0

    # Entry points

    def reconcile(self, dry_run: bool = False) -> List[ReconciliationAction]:
        """Reconcile both calendars over the configured window around today."""
        start, end = reconciliation_window(self.settings)
        return self.reconcile_both(start, end, dry_run)

    def reconcile_window(self, start: date, end: date) -> List[ReconciliationAction]:
        """Reconcile both calendars over an explicit window. Always executes."""
        return self.reconcile_both(start, end, dry_run=False)

    def reconcile_both(self, start: date, end: date, dry_run: bool = False) -> List[ReconciliationAction]:
        """Run releases then calls; a failing calendar does not stop the other one."""
        logging.info("Reconciling events from %s to %s%s", start, end, " [dry run]" if dry_run else "")
        self.executed = 0
        actions: List[ReconciliationAction] = []
        failures = {}
        for kind, run in ((RELEASES, self.reconcile_releases), (CALLS, self.reconcile_calls)):
            try:
                actions.extend(run(start, end, dry_run))
            except CalsyncError as exc:
                logging.error("Reconciliation of %s failed: %s", kind, exc)
                failures[kind] = exc
        if failures:
            raise ReconciliationError(
                "Failed to reconcile " + ", ".join(failures), failures=failures, actions=actions
            )
        return actions

    def reconcile_releases(self, start: date, end: date, dry_run: bool = False) -> List[ReconciliationAction]:
        calendar_id = resolve_calendar_id(self.settings, RELEASES)
        return self._reconcile_calendar(
            RELEASES, calendar_id, lambda: self.loader.load_release_events(start, end), start, end, dry_run
        )

    def reconcile_calls(self, start: date, end: date, dry_run: bool = False) -> List[ReconciliationAction]:
        calendar_id = resolve_calendar_id(self.settings, CALLS)
        return self._reconcile_calendar(
            CALLS, calendar_id, lambda: self.loader.load_call_events(start, end), start, end, dry_run
        )

    def reconcile_events(
        self,
        local_events: Sequence[Event],
        remote_events: Sequence[RemoteEvent],
        calendar_id: str,
        dry_run: bool = False,
    ) -> List[ReconciliationAction]:
        """Reconcile already fetched local and remote events for one calendar."""
        actions = self.analyze(local_events, remote_events, calendar_id)

        logging.info("=== Reconciliation analysis (%s) ===", calendar_id)
        logging.info("Found %d action(s) to perform%s", len(actions), " [dry run]" if dry_run else "")
        for action in actions:
            logging.info("  - %s", action)

        if not dry_run:
            logging.info("=== Executing actions (%s) ===", calendar_id)
            executed = self.execute_actions(actions)
            self.executed += executed
            logging.info("Executed %d of %d action(s) on %s", executed, len(actions), calendar_id)
        return actions

    # Phase 1

    def analyze(
        self,
        local_events: Sequence[Event],
        remote_events: Sequence[RemoteEvent],
        calendar_id: str,
    ) -> List[ReconciliationAction]:
        actions: List[ReconciliationAction] = []

        remote_by_key: Dict[str, RemoteEvent] = {}
        for remote in remote_events:
            remote_by_key[remote_event_key(remote)] = remote

        matched = set()
        for local in local_events:
            key = event_key(local)
            remote = remote_by_key.get(key)
            if remote is None:
                actions.append(ReconciliationAction.create(local, calendar_id))
                continue
            matched.add(key)
            if self.comparator.needs_update(local, remote):
                actions.append(ReconciliationAction.update(local, remote, calendar_id))

        for remote in remote_events:
            if remote_event_key(remote) in matched:
                continue
            if is_managed_by_us(remote):
                actions.append(ReconciliationAction.delete(remote, calendar_id))
            else:
                actions.append(ReconciliationAction.warn_orphan(remote, calendar_id))

        return actions

    # Phase 2

    def execute_actions(self, actions: Sequence[ReconciliationAction]) -> int:
        """Apply actions in order. A failing action is logged and skipped; returns the success count."""
        executed = 0
        for action in actions:
            try:
                self._execute(action)
            except Exception as exc:
                logging.error("  x Failed to execute %s: %s", action.description, exc)
            else:
                executed += 1
        return executed

    def _execute(self, action: ReconciliationAction) -> None:
        if action.type is ActionType.CREATE:
            logging.info("Creating: %s", action.description)
            self.store.create_event(action.calendar_id, to_gcal_body(action.local_event))
            logging.info("  ok Created")
        elif action.type is ActionType.UPDATE:
            logging.info("Updating: %s", action.description)
            self.store.update_event(action.calendar_id, action.remote_event["id"], to_gcal_body(action.local_event))
            logging.info("  ok Updated")
        elif action.type is ActionType.DELETE:
            logging.info("Deleting: %s", action.description)
            self.store.delete_event(action.calendar_id, action.remote_event["id"])
            logging.info("  ok Deleted")
        elif action.type is ActionType.WARN_ORPHAN:
            logging.warning("%s", action.description)
        else:
            raise ValueError(f"Unknown action type {action.type}")

    # Helpers

    def _reconcile_calendar(
        self,
        kind: str,
        calendar_id: str,
        load_local: Callable[[], Sequence[Event]],
        start: date,
        end: date,
        dry_run: bool,
    ) -> List[ReconciliationAction]:
        try:
            local_events = load_local()
            remote_events = self.store.list_events(calendar_id, self.settings.list_page_size)
            remote_events = filter_by_date_range(remote_events, start, end)
        except Exception as exc:
            raise ReconciliationError(f"Failed to reconcile {kind}: {exc}") from exc
        logging.info(
            "%s: %d local and %d remote event(s) between %s and %s",
            kind, len(local_events), len(remote_events), start, end,
        )
        try:
            return self.reconcile_events(local_events, remote_events, calendar_id, dry_run)
        except Exception as exc:
            raise ReconciliationError(f"Failed to reconcile {kind}: {exc}") from exc

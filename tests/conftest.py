"""Shared fixtures: an in-memory calendar store and ready-made events."""

import copy
from datetime import date, datetime, time, timedelta, timezone

import pytest

from calsync.config import MANAGED_BY_PROPERTY, MANAGED_BY_VALUE, Settings
from calsync.models import CallEvent, ReleaseEvent
from calsync.reconcile import CalendarReconciliation

RELEASES_CALENDAR_ID = "test-releases@calendar.com"
CALLS_CALENDAR_ID = "test-calls@calendar.com"


class FakeCalendarStore:
    """Remote store keeping events per calendar in memory and recording every call."""

    def __init__(self):
        self.events = {}
        self.calls = []
        self.failing_ids = set()
        self.failing_summaries = set()
        self.list_error = None
        self._next_id = 1

    def add_event(self, calendar_id, event):
        event = copy.deepcopy(event)
        event.setdefault("id", self._new_id())
        self.events.setdefault(calendar_id, {})[event["id"]] = event
        return event

    def all_events(self, calendar_id):
        return list(self.events.get(calendar_id, {}).values())

    def events_by_title(self, calendar_id, title):
        return [e for e in self.all_events(calendar_id) if e.get("summary") == title]

    def mutations(self):
        return [c for c in self.calls if c[0] != "list"]

    def _new_id(self):
        event_id = f"evt-{self._next_id}"
        self._next_id += 1
        return event_id

    def list_events(self, calendar_id, page_size=100):
        self.calls.append(("list", calendar_id))
        if self.list_error is not None:
            raise self.list_error
        return copy.deepcopy(self.all_events(calendar_id))

    def create_event(self, calendar_id, body):
        self.calls.append(("create", calendar_id, body))
        if body.get("summary") in self.failing_summaries:
            raise RuntimeError(f"create rejected for {body.get('summary')}")
        return self.add_event(calendar_id, body)

    def update_event(self, calendar_id, event_id, body):
        self.calls.append(("update", calendar_id, event_id, body))
        if event_id in self.failing_ids:
            raise RuntimeError(f"update rejected for {event_id}")
        event = copy.deepcopy(body)
        event["id"] = event_id
        self.events.setdefault(calendar_id, {})[event_id] = event
        return event

    def delete_event(self, calendar_id, event_id):
        self.calls.append(("delete", calendar_id, event_id))
        if event_id in self.failing_ids:
            raise RuntimeError(f"delete rejected for {event_id}")
        del self.events[calendar_id][event_id]


def remote_all_day(summary, day, managed=False, event_id=None, description=""):
    event = {
        "summary": summary,
        "description": description,
        "start": {"date": day.isoformat()},
        "end": {"date": day.isoformat()},
    }
    if managed:
        event["extendedProperties"] = {"private": {MANAGED_BY_PROPERTY: MANAGED_BY_VALUE}}
    if event_id:
        event["id"] = event_id
    return event


def remote_timed(summary, day, start, minutes, managed=False, event_id=None, description="", call_link=None):
    begin = datetime.combine(day, start, tzinfo=timezone.utc)
    event = {
        "summary": summary,
        "description": description,
        "start": {"dateTime": begin.isoformat(), "timeZone": "UTC"},
        "end": {"dateTime": (begin + timedelta(minutes=minutes)).isoformat(), "timeZone": "UTC"},
    }
    if managed:
        event["extendedProperties"] = {"private": {MANAGED_BY_PROPERTY: MANAGED_BY_VALUE}}
    if call_link:
        event["conferenceData"] = {
            "entryPoints": [{"entryPointType": "video", "uri": call_link, "label": "Join"}],
            "conferenceSolution": {"key": {"type": "addOn"}, "name": "Video"},
        }
    if event_id:
        event["id"] = event_id
    return event


@pytest.fixture
def settings(tmp_path):
    return Settings(
        releases_calendar_id=RELEASES_CALENDAR_ID,
        calls_calendar_id=CALLS_CALENDAR_ID,
        releases_dir=str(tmp_path / "releases"),
        calls_dir=str(tmp_path / "calls"),
    )


@pytest.fixture
def store():
    return FakeCalendarStore()


@pytest.fixture
def reconciliation(settings, store):
    return CalendarReconciliation(settings, store)


@pytest.fixture
def release_event():
    return ReleaseEvent("3.20.0 Release", date(2025, 6, 1))


@pytest.fixture
def call_event():
    return CallEvent(
        "Sync",
        date(2025, 6, 1),
        time(14, 0),
        timedelta(minutes=50),
        description="Weekly sync",
        call_link="https://zoom.us/j/1",
    )

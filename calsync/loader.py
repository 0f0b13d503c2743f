"""YAML event files: the local source of truth."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

import yaml

from .errors import EventFileError
from .models import CallEvent, ReleaseEvent
from .utils import parse_duration

YAML_SUFFIXES = (".yaml", ".yml")

T = TypeVar("T")


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValueError(f"invalid date {value!r}")


def _parse_time(value) -> time:
    if isinstance(value, time):
        return value
    # YAML 1.1 reads an unquoted 14:00 as the base-60 integer 840
    if isinstance(value, int) and not isinstance(value, bool):
        # unquoted 14:00:00 arrives as 50400 and cannot be told apart from minutes
        if not 0 <= value < 24 * 60:
            raise ValueError(f"invalid time {value!r}: time must be HH:MM (quote it to add seconds)")
        hours, minutes = divmod(value, 60)
        return time(hours, minutes)
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValueError(f"invalid time {value!r}")


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value.strip() or None


def _required_title(data: dict) -> str:
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValueError("missing 'title'")
    return title.strip()


def _required(data: dict, key: str):
    if data.get(key) is None:
        raise ValueError(f"missing '{key}'")
    return data[key]


def parse_release(data: dict) -> ReleaseEvent:
    return ReleaseEvent(
        title=_required_title(data),
        date=_parse_date(_required(data, "date")),
        description=_optional_str(data, "description"),
    )


def parse_call(data: dict) -> CallEvent:
    return CallEvent(
        title=_required_title(data),
        date=_parse_date(_required(data, "date")),
        time=_parse_time(_required(data, "time")),
        duration=parse_duration(_required(data, "duration")),
        description=_optional_str(data, "description"),
        call_link=_optional_str(data, "callLink"),
    )


def _yaml_files(directory: Path) -> List[Path]:
    return sorted(p for p in directory.rglob("*") if p.is_file() and p.suffix.lower() in YAML_SUFFIXES)


def read_event_file(path: Path, parse: Callable[[dict], T]) -> T:
    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise EventFileError(path, f"cannot read YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise EventFileError(path, "expected a mapping at the top level")
    try:
        return parse(data)
    except (TypeError, ValueError) as exc:
        raise EventFileError(path, str(exc)) from exc


class LocalEventLoader:
    def __init__(self, releases_dir, calls_dir):
        self.releases_dir = Path(releases_dir)
        self.calls_dir = Path(calls_dir)

    def _load(self, directory: Path, parse: Callable[[dict], T]) -> List[T]:
        if not directory.is_dir():
            logging.warning("Event directory %s does not exist", directory)
            return []
        return [read_event_file(path, parse) for path in _yaml_files(directory)]

    def load_release_events(self, start: date, end: date) -> List[ReleaseEvent]:
        events = [e for e in self._load(self.releases_dir, parse_release) if start <= e.date <= end]
        events.sort(key=lambda e: (e.date, e.title))
        logging.info("Loaded %d release events between %s and %s", len(events), start, end)
        return events

    def load_call_events(self, start: date, end: date) -> List[CallEvent]:
        events = [e for e in self._load(self.calls_dir, parse_call) if start <= e.date <= end]
        events.sort(key=lambda e: (e.date, e.time, e.title))
        logging.info("Loaded %d call events between %s and %s", len(events), start, end)
        return events

    def check_format(self) -> List[EventFileError]:
        """Validate every event file, collecting all errors instead of stopping at the first."""
        errors: List[EventFileError] = []
        checked = 0
        for directory, parse in ((self.releases_dir, parse_release), (self.calls_dir, parse_call)):
            if not directory.is_dir():
                logging.warning("Event directory %s does not exist", directory)
                continue
            for path in _yaml_files(directory):
                checked += 1
                try:
                    read_event_file(path, parse)
                except EventFileError as exc:
                    errors.append(exc)
        logging.info("Checked %d event files, %d invalid", checked, len(errors))
        return errors

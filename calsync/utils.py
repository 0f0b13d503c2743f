from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Union

from .config import MANAGED_BY_PROPERTY, MANAGED_BY_VALUE
from .errors import RemoteDateError
from .models import Event, RemoteEvent

ISO_DURATION_REGEX = re.compile(r"^P(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)$", re.IGNORECASE)


def parse_remote_datetime(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_date(remote: RemoteEvent) -> date:
    """Calendar date of a remote event: all-day start date, or the UTC date of a timed start."""
    start = remote.get("start") or {}
    try:
        if start.get("date"):
            return date.fromisoformat(start["date"])
        if start.get("dateTime"):
            return parse_remote_datetime(start["dateTime"]).astimezone(timezone.utc).date()
    except (TypeError, ValueError) as exc:
        raise RemoteDateError(f"Cannot parse start of remote event {remote.get('id')}: {start}") from exc
    raise RemoteDateError(f"Remote event {remote.get('id')} has no start date")


def event_key(event: Event) -> str:
    return f"{event.title}|{event.date.isoformat()}"


def remote_event_key(remote: RemoteEvent) -> str:
    return f"{remote.get('summary') or ''}|{extract_date(remote).isoformat()}"


def filter_by_date_range(events: Iterable[RemoteEvent], start: date, end: date) -> List[RemoteEvent]:
    return [event for event in events if start <= extract_date(event) <= end]


def is_managed_by_us(remote: RemoteEvent) -> bool:
    private = (remote.get("extendedProperties") or {}).get("private")
    if not private:
        return False
    return private.get(MANAGED_BY_PROPERTY) == MANAGED_BY_VALUE


def parse_duration(value: Union[int, str, timedelta]) -> timedelta:
    """Accept minutes as an integer or an ISO-8601 time span such as ``PT1H30M``."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration {value!r}")
    if isinstance(value, int):
        if value <= 0:
            raise ValueError(f"Duration must be positive, got {value}")
        return timedelta(minutes=value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_duration(int(text))
        match = ISO_DURATION_REGEX.match(text)
        if match and any(match.groups()):
            hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
            duration = timedelta(hours=hours, minutes=minutes, seconds=seconds)
            if duration > timedelta(0):
                return duration
    raise ValueError(f"Invalid duration {value!r}")

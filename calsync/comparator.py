from __future__ import annotations

import logging
from typing import Optional, Protocol

from .convert import to_gcal_body
from .models import Event, RemoteEvent
from .utils import parse_remote_datetime


class EventComparator(Protocol):
    def needs_update(self, local: Event, remote: RemoteEvent) -> bool:
        ...


def _video_uri(body: dict) -> Optional[str]:
    for entry in (body.get("conferenceData") or {}).get("entryPoints") or []:
        if entry.get("entryPointType") == "video":
            return entry.get("uri")
    return None


def _same_time(expected: dict, actual: dict) -> bool:
    if "date" in expected:
        return actual.get("date") == expected["date"] and not actual.get("dateTime")
    if not actual.get("dateTime"):
        return False
    try:
        return parse_remote_datetime(actual["dateTime"]) == parse_remote_datetime(expected["dateTime"])
    except ValueError:
        # an unreadable remote time is rewritten from the local file
        return False


class DefaultEventComparator:
    """Compares the fields calsync writes: summary, description, start/end and video link.

    All-day events are compared on their start date only; the managed marker
    is not considered.
    """

    def needs_update(self, local: Event, remote: RemoteEvent) -> bool:
        expected = to_gcal_body(local)
        differences = []

        if (remote.get("summary") or "") != expected["summary"]:
            differences.append("summary")
        if (remote.get("description") or "") != expected["description"]:
            differences.append("description")
        if not _same_time(expected["start"], remote.get("start") or {}):
            differences.append("start")
        if "dateTime" in expected["end"] and not _same_time(expected["end"], remote.get("end") or {}):
            differences.append("end")
        if _video_uri(expected) != _video_uri(remote):
            differences.append("conference link")

        if differences:
            logging.debug("'%s' differs from remote %s in: %s", local.title, remote.get("id"), ", ".join(differences))
        return bool(differences)

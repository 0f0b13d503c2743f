"""Mapping of local events onto Google Calendar event bodies."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

from .config import MANAGED_BY_PROPERTY, MANAGED_BY_VALUE
from .models import CallEvent, Event, ReleaseEvent

SUPPORTED_VIDEO_HOSTS = (
    "meet.google.com",
    "zoom.us",
    "teams.microsoft.com",
    "teams.live.com",
)

# (host fragments, entry point label, conference solution name)
VIDEO_PLATFORMS = (
    (("meet.google.com",), "Join with Google Meet", "Google Meet"),
    (("zoom.us",), "Join Zoom Meeting", "Zoom"),
    (("teams.microsoft.com", "teams.live.com"), "Join Microsoft Teams Meeting", "Microsoft Teams"),
)
FALLBACK_PLATFORM = ("Join video call", "Video Conference")


def is_supported_video_platform(url: Optional[str]) -> bool:
    if not url or not url.strip():
        return False
    lowered = url.lower()
    return any(host in lowered for host in SUPPORTED_VIDEO_HOSTS)


def detect_video_platform(url: str) -> Tuple[str, str]:
    """Return the (label, solution name) pair for a call link."""
    lowered = url.lower()
    for hosts, label, solution in VIDEO_PLATFORMS:
        if any(host in lowered for host in hosts):
            return label, solution
    return FALLBACK_PLATFORM


def build_conference_data(call_link: str) -> dict:
    label, solution = detect_video_platform(call_link)
    return {
        "entryPoints": [
            {
                "entryPointType": "video",
                "uri": call_link,
                "label": label,
            }
        ],
        # third-party links must be declared as an add-on solution
        "conferenceSolution": {
            "key": {"type": "addOn"},
            "name": solution,
        },
    }


def call_start(event: CallEvent) -> datetime:
    return datetime.combine(event.date, event.time, tzinfo=timezone.utc)


def _utc_datetime(value: datetime) -> dict:
    return {"dateTime": value.isoformat(), "timeZone": "UTC"}


def to_gcal_body(event: Event) -> dict:
    body = {
        "summary": event.title,
        "description": event.description or "",
        "extendedProperties": {
            "private": {
                MANAGED_BY_PROPERTY: MANAGED_BY_VALUE,
            }
        },
    }

    if isinstance(event, ReleaseEvent):
        body["start"] = {"date": event.date.isoformat()}
        body["end"] = {"date": event.date.isoformat()}
    elif isinstance(event, CallEvent):
        start = call_start(event)
        body["start"] = _utc_datetime(start)
        body["end"] = _utc_datetime(start + event.duration)
        if event.call_link:
            body["description"] += f"\n\nJoin: {event.call_link}"
            if is_supported_video_platform(event.call_link):
                body["conferenceData"] = build_conference_data(event.call_link)
    else:
        raise TypeError(f"Unsupported event type {type(event).__name__}")

    return body

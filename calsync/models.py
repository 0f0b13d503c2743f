from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class ReleaseEvent:
    title: str
    date: date
    description: Optional[str] = None


@dataclass(frozen=True)
class CallEvent:
    title: str
    date: date
    time: time
    duration: timedelta
    description: Optional[str] = None
    call_link: Optional[str] = None


Event = Union[ReleaseEvent, CallEvent]

# Google Calendar event resource, as returned by the API.
RemoteEvent = dict


class ActionType(Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    WARN_ORPHAN = "WARN_ORPHAN"


# (local event present, remote event present) per action type
_REQUIRED_EVENTS = {
    ActionType.CREATE: (True, False),
    ActionType.UPDATE: (True, True),
    ActionType.DELETE: (False, True),
    ActionType.WARN_ORPHAN: (False, True),
}


def _describe_remote(remote: RemoteEvent) -> str:
    start = remote.get("start", {})
    when = start.get("date") or start.get("dateTime") or "?"
    return f"'{remote.get('summary', '')}' on {when}"


@dataclass(frozen=True)
class ReconciliationAction:
    """A decided operation against one calendar, built only via the factories below."""

    type: ActionType
    calendar_id: str
    description: str
    local_event: Optional[Event] = None
    remote_event: Optional[RemoteEvent] = None

    def __post_init__(self):
        wants_local, wants_remote = _REQUIRED_EVENTS[self.type]
        if (self.local_event is not None) != wants_local:
            raise ValueError(f"{self.type.value} action {'requires' if wants_local else 'takes no'} local event")
        if (self.remote_event is not None) != wants_remote:
            raise ValueError(f"{self.type.value} action {'requires' if wants_remote else 'takes no'} remote event")

    @classmethod
    def create(cls, local_event: Event, calendar_id: str) -> "ReconciliationAction":
        return cls(
            type=ActionType.CREATE,
            calendar_id=calendar_id,
            description=f"CREATE '{local_event.title}' on {local_event.date.isoformat()}",
            local_event=local_event,
        )

    @classmethod
    def update(cls, local_event: Event, remote_event: RemoteEvent, calendar_id: str) -> "ReconciliationAction":
        return cls(
            type=ActionType.UPDATE,
            calendar_id=calendar_id,
            description=f"UPDATE '{local_event.title}' on {local_event.date.isoformat()} (id={remote_event.get('id')})",
            local_event=local_event,
            remote_event=remote_event,
        )

    @classmethod
    def delete(cls, remote_event: RemoteEvent, calendar_id: str) -> "ReconciliationAction":
        return cls(
            type=ActionType.DELETE,
            calendar_id=calendar_id,
            description=f"DELETE {_describe_remote(remote_event)}: no local file",
            remote_event=remote_event,
        )

    @classmethod
    def warn_orphan(cls, remote_event: RemoteEvent, calendar_id: str) -> "ReconciliationAction":
        return cls(
            type=ActionType.WARN_ORPHAN,
            calendar_id=calendar_id,
            description=(
                f"ORPHAN {_describe_remote(remote_event)}: no local file and not managed by calsync, leaving it alone"
            ),
            remote_event=remote_event,
        )

    def __str__(self) -> str:
        return self.description

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta
from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

MANAGED_BY_PROPERTY = "managed_by"
MANAGED_BY_VALUE = "calsync"

RELEASES = "releases"
CALLS = "calls"

_CALENDAR_ID_VARS = {
    RELEASES: "RELEASES_CALENDAR_ID",
    CALLS: "CALLS_CALENDAR_ID",
}


@dataclass(frozen=True)
class Settings:
    releases_calendar_id: Optional[str] = None
    calls_calendar_id: Optional[str] = None
    months_before: int = 1
    months_after: int = 6
    releases_dir: str = "quarkus-releases"
    calls_dir: str = "quarkus-calls"
    google_client_secrets: str = "credentials.json"
    google_token_file: str = "token.json"
    list_page_size: int = 100


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logging.warning("Invalid %s=%r, falling back to %d", name, raw, default)
        return default
    if value < 0:
        logging.warning("Negative %s=%d, falling back to %d", name, value, default)
        return default
    return value


def get_settings() -> Settings:
    settings = Settings(
        releases_calendar_id=os.getenv("RELEASES_CALENDAR_ID") or None,
        calls_calendar_id=os.getenv("CALLS_CALENDAR_ID") or None,
        months_before=_get_int("RECONCILE_MONTHS_BEFORE", 1),
        months_after=_get_int("RECONCILE_MONTHS_AFTER", 6),
        releases_dir=os.getenv("RELEASES_DIR", "quarkus-releases"),
        calls_dir=os.getenv("CALLS_DIR", "quarkus-calls"),
        google_client_secrets=os.getenv("GOOGLE_CLIENT_SECRETS", "credentials.json"),
        google_token_file=os.getenv("GOOGLE_TOKEN_FILE", "token.json"),
        list_page_size=_get_int("LIST_PAGE_SIZE", 100) or 100,
    )
    for kind, var in _CALENDAR_ID_VARS.items():
        if not getattr(settings, f"{kind}_calendar_id"):
            logging.warning("%s is not set", var)
    return settings


def resolve_calendar_id(settings: Settings, kind: str) -> str:
    """Return the calendar id configured for ``kind`` ("releases" or "calls")."""
    if kind not in _CALENDAR_ID_VARS:
        raise ConfigurationError(f"Unknown calendar kind '{kind}'")
    calendar_id = getattr(settings, f"{kind}_calendar_id")
    if not calendar_id:
        raise ConfigurationError(f"{kind.capitalize()} calendar ID not configured (set {_CALENDAR_ID_VARS[kind]})")
    return calendar_id


def reconciliation_window(settings: Settings, today: Optional[date] = None) -> Tuple[date, date]:
    today = today or date.today()
    return (
        today - relativedelta(months=settings.months_before),
        today + relativedelta(months=settings.months_after),
    )

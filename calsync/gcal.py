from __future__ import annotations

import logging
import os
from typing import List

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .models import RemoteEvent

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def _load_credentials(client_secrets_file: str, token_file: str) -> Credentials:
    creds = None
    if token_file and os.path.exists(token_file):
        try:
            creds = Credentials.from_authorized_user_file(token_file, SCOPES)
        except (ValueError, OSError) as exc:
            logging.warning("Ignoring unreadable token file %s: %s", token_file, exc)
            creds = None
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except GoogleAuthError as exc:
                logging.warning("Token refresh failed (%s), starting a new authorization flow", exc)
                creds = None
        if not creds or not creds.valid:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets_file, SCOPES)
            creds = flow.run_local_server(port=0)
        with open(token_file, "w") as token:
            token.write(creds.to_json())
    return creds


def build_service(client_secrets_file: str, token_file: str):
    creds = _load_credentials(client_secrets_file, token_file)
    return build("calendar", "v3", credentials=creds, cache_discovery=False)


class GoogleCalendarStore:
    """Remote event store backed by the Google Calendar v3 API.

    Errors raised by the client (``googleapiclient.errors.HttpError`` and
    transport failures) are left to the caller.
    """

    def __init__(self, service):
        self.service = service

    def list_events(self, calendar_id: str, page_size: int = 100) -> List[RemoteEvent]:
        logging.info("Listing events of calendar %s", calendar_id)
        events: List[RemoteEvent] = []
        page_token = None
        while True:
            events_result = (
                self.service.events()
                .list(
                    calendarId=calendar_id,
                    singleEvents=True,
                    showDeleted=False,
                    maxResults=page_size,
                    pageToken=page_token,
                )
                .execute()
            )
            events.extend(events_result.get("items", []))
            page_token = events_result.get("nextPageToken")
            if not page_token:
                break
        logging.info("Found %d remote events in %s", len(events), calendar_id)
        return events

    def create_event(self, calendar_id: str, body: dict) -> RemoteEvent:
        return (
            self.service.events()
            .insert(calendarId=calendar_id, body=body, conferenceDataVersion=1)
            .execute()
        )

    def update_event(self, calendar_id: str, event_id: str, body: dict) -> RemoteEvent:
        return (
            self.service.events()
            .update(calendarId=calendar_id, eventId=event_id, body=body, conferenceDataVersion=1)
            .execute()
        )

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        self.service.events().delete(calendarId=calendar_id, eventId=event_id).execute()

from __future__ import annotations

from pathlib import Path
from typing import Optional


class CalsyncError(Exception):
    pass


class ConfigurationError(CalsyncError):
    pass


class EventFileError(CalsyncError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class RemoteDateError(CalsyncError, ValueError):
    pass


class ReconciliationError(CalsyncError):
    """Raised when a calendar cannot be reconciled at all.

    For runs covering both calendars, ``failures`` maps each failed calendar
    kind to its error and ``actions`` holds what the other calendars produced.
    """

    def __init__(self, message: str, failures: Optional[dict] = None, actions: Optional[list] = None):
        super().__init__(message)
        self.failures = failures or {}
        self.actions = actions or []

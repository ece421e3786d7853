"""
eventrelay — Errors
===================
Every error raised by the dispatcher layer derives from ``DispatcherError``.
Listener exceptions are not wrapped; they reach the caller of ``dispatch``
unchanged.
"""
from __future__ import annotations
from typing import Any, Optional


class DispatcherError(Exception):
    """Base error for eventrelay."""
    pass


class InvalidArgument(DispatcherError, TypeError):
    """A call received a value of the wrong shape (names, listener, subscriber)."""

    def __init__(self, message: str, value: Any = None):
        self.value = value
        super().__init__(message)


class ArgumentNotFound(DispatcherError, LookupError):
    """Requested event argument does not exist."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Event argument '{key}' not found.")


class WiringError(DispatcherError):
    """A wiring entry could not be turned into a listener or subscriber."""

    def __init__(self, message: str, entry: Optional[dict] = None):
        self.entry = entry
        super().__init__(message)

"""Errors raised by the Open Library client.

``str(err)`` is always the generic user-facing message. The underlying
cause is chained (``__cause__``) and logged, never shown to the user.
"""

from __future__ import annotations

from typing import Optional

SEARCH_FAILED = "Failed to fetch books. Please try again."
DETAIL_FAILED = "Failed to fetch book details. Please try again."


class BookFinderError(Exception):
    """Base error for provider lookups."""


class NetworkError(BookFinderError):
    """The request never got a response (DNS, connect, timeout)."""


class ProviderError(BookFinderError):
    """The provider answered with a non-success status or an unreadable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

"""Domain exceptions.

Every exception carries the HTTP status it maps to and a client-safe
``detail`` message. The API layer installs a single handler for
``JournalError`` (see ``city_journal.api.app``), so services raise these
directly instead of building ``HTTPException`` objects.

| Exception          | Status | Retry |
|--------------------|--------|-------|
| Unauthorized       | 401    | no    |
| InvalidRange       | 400    | no    |
| InvalidRequest     | 400    | no    |
| RecordNotFound     | 404    | no    |
| DuplicateUser      | 409    | no    |
| StorageFailure     | 500    | yes   |

``MalformedDocument`` is raised while reading stored calendars and is
handled inside the statistics aggregator as "no data"; it only reaches a
client when some other caller lets it escape.
"""

from __future__ import annotations


class JournalError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    default_detail: str = "Internal Server Error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthorized(JournalError):
    """No valid authenticated session."""

    status_code = 401
    default_detail = "Unauthorized"


class InvalidRequest(JournalError):
    """The request is missing a field or has one in the wrong shape."""

    status_code = 400
    default_detail = "Invalid request"


class InvalidRange(InvalidRequest):
    """Malformed date-key or a start date after the end date."""

    default_detail = "Invalid date range"


class RecordNotFound(JournalError):
    """A day, city record or activity does not exist for this user."""

    status_code = 404
    default_detail = "Record not found"


class DuplicateUser(JournalError):
    """An account with this email already exists."""

    status_code = 409
    default_detail = "Email is already registered"


class StorageFailure(JournalError):
    """The document store could not be read or written.

    The original exception is kept as ``__cause__`` for logging; ``detail``
    stays generic so internals never reach the client.
    """

    status_code = 500
    default_detail = "Internal Server Error"


class MalformedDocument(JournalError):
    """Stored calendar data does not have the expected shape."""

    status_code = 500
    default_detail = "Stored calendar data is malformed"

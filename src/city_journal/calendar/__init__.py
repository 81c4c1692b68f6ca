"""Calendar storage.

Each user owns one calendar document mapping date-keys to day records.
``EventStore`` reads and writes it; the statistics aggregator and the
calendar routes are its only callers.
"""

from city_journal.calendar.store import EventStore

__all__ = ["EventStore"]

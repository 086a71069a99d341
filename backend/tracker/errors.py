"""Failure taxonomy of the territory pipeline.

Every error here aborts at most the current tracking cycle; the next
scheduled cycle starts over from whatever state is stored.
"""


class TrackerError(Exception):
    pass


class TransientFetchError(TrackerError):
    """Upstream request failed or returned a body we could not parse."""


class IntegrityViolation(TrackerError):
    """Fetched snapshot is older than the last accepted one."""


class PersistenceError(TrackerError):
    """Snapshot replace or log read failed; nothing of the cycle was kept."""


class SubscriptionLookupError(TrackerError):
    """Subscriber lists could not be loaded; dispatch is skipped for the cycle."""

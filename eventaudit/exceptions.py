"""Exception hierarchy for the audited event store."""

from typing import Optional


class PersistenceError(Exception):
    """Base exception for all eventaudit errors."""


class NotFoundError(PersistenceError, LookupError):
    """Raised when an id (or id and revision) has no matching row."""


class EventNotFoundError(NotFoundError):
    """Raised when no live event exists for an id."""

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__(f"Event {event_id} not found")


class RevisionNotFoundError(NotFoundError):
    """Raised when no revision matches the requested id and revision number."""

    def __init__(self, message: str, entity_id: Optional[int] = None, revision_number: Optional[int] = None):
        self.entity_id = entity_id
        self.revision_number = revision_number
        super().__init__(message)


class ConflictError(PersistenceError):
    """Raised when a revision cannot be appended in increasing order.

    The whole transaction must be retried by the caller.
    """

    def __init__(self, message: str, entity_id: Optional[int] = None, revision_number: Optional[int] = None):
        self.entity_id = entity_id
        self.revision_number = revision_number
        super().__init__(message)

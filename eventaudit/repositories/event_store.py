"""Event store: CRUD on live events with revision tracking."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..domain import EVENT_FIELDS, Event, RevisionType
from ..exceptions import ConflictError, EventNotFoundError
from ..models.base import as_naive_utc
from ..models.event import EventRecord
from .base import BaseRepository
from .revision_log import RevisionLog

logger = logging.getLogger(__name__)


class EventStore(BaseRepository[EventRecord]):
    """Repository for events.

    Every mutation appends to the revision log in the same session, so the
    live row and its revision commit or roll back together.
    """

    model_class = EventRecord

    def __init__(self, session: Session, revision_log: Optional[RevisionLog] = None):
        super().__init__(session)
        self.revision_log = revision_log or RevisionLog(session)

    def create(self, event: Event) -> int:
        """Insert a new event and return its generated id.

        Any id already set on ``event`` is ignored.
        """
        record = EventRecord.from_domain(event)
        self.session.add(record)
        self.session.flush()  # Get the ID

        revision = self.revision_log.append(record.id, RevisionType.ADD, record.to_domain())
        logger.info(f"Created event {record.id} at revision {revision}")
        return record.id

    def get(self, event_id: int) -> Optional[Event]:
        """Get event by ID, or None."""
        record = self._get_row(event_id)
        return record.to_domain() if record else None

    def read(self, event_id: int) -> Event:
        """Get event by ID.

        Raises:
            EventNotFoundError: no live event has this id.
        """
        return self._require(event_id).to_domain()

    def find_all(self) -> List[Event]:
        """Get all live events ordered by id."""
        return [record.to_domain() for record in self._get_all_rows()]

    def update(self, event_id: int, patch: Mapping[str, Any]) -> None:
        """Apply ``patch`` (field name to new value) to an event.

        A patch that changes nothing records no revision. Aware dates are
        compared and stored as naive UTC.

        Raises:
            ValueError: the patch names a field that is not audited.
            EventNotFoundError: no live event has this id.
        """
        unknown = set(patch) - set(EVENT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown event fields: {', '.join(sorted(unknown))}")
        if 'title' in patch and not isinstance(patch['title'], str):
            raise ValueError("Event title must be a string")
        if 'date' in patch and not isinstance(patch['date'], datetime):
            raise ValueError("Event date must be a datetime")

        values = dict(patch)
        if 'date' in values:
            values['date'] = as_naive_utc(values['date'])

        record = self._require(event_id)
        changed_fields = self._find_changed_fields(record.snapshot(), values)
        if not changed_fields:
            logger.debug(f"Update of event {event_id} changed nothing")
            return

        for name in changed_fields:
            setattr(record, name, values[name])
        self.session.flush()

        revision = self.revision_log.append(event_id, RevisionType.MOD, record.to_domain())
        logger.info(f"Updated event {event_id} ({', '.join(changed_fields)}) at revision {revision}")

    def delete(self, event_id: int) -> None:
        """Delete an event. Its revision history is kept.

        Raises:
            EventNotFoundError: no live event has this id.
        """
        record = self._require(event_id)
        last_known = record.to_domain()

        self.session.delete(record)
        self.session.flush()

        revision = self.revision_log.append(event_id, RevisionType.DEL, last_known)
        logger.info(f"Deleted event {event_id} at revision {revision}")

    def restore(self, event: Event) -> int:
        """Re-insert a deleted event under its original id."""
        if event.id is None:
            raise ValueError("Cannot restore an event without an id")
        if self._get_row(event.id) is not None:
            raise ConflictError(f"Event {event.id} already exists", entity_id=event.id)

        record = EventRecord.from_domain(event, keep_id=True)
        self.session.add(record)
        self.session.flush()

        revision = self.revision_log.append(record.id, RevisionType.ADD, record.to_domain())
        logger.info(f"Restored event {record.id} at revision {revision}")
        return record.id

    def _require(self, event_id: int) -> EventRecord:
        record = self._get_row(event_id)
        if record is None:
            raise EventNotFoundError(event_id)
        return record

    def _find_changed_fields(
        self,
        current: Dict[str, Any],
        patch: Mapping[str, Any]
    ) -> List[str]:
        """Find which fields the patch actually changes, in field order."""
        return [
            name for name in EVENT_FIELDS
            if name in patch and patch[name] != current.get(name)
        ]

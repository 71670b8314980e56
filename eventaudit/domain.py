"""Plain domain objects returned by the store and the audit reader.

These are the only objects callers ever see. ORM rows stay inside the
repositories and are converted with the explicit mapping functions in
``eventaudit.models``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Optional


EVENT_FIELDS = ('title', 'date')


class RevisionType(IntEnum):
    """Kind of change recorded by a revision."""

    ADD = 0
    MOD = 1
    DEL = 2


@dataclass
class Event:
    """Current-state event record."""

    title: str
    date: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for CLI output and exports."""
        return {
            'id': self.id,
            'title': self.title,
            'date': self.date.isoformat() if self.date else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Create an event from a dictionary produced by ``to_dict``."""
        date = data.get('date')
        if isinstance(date, str):
            date = datetime.fromisoformat(date)
        return cls(title=data['title'], date=date, id=data.get('id'))


@dataclass(frozen=True)
class Revision:
    """Immutable snapshot of an event at a committed revision."""

    entity_id: int
    revision_number: int
    revision_type: RevisionType
    title: str
    date: datetime
    committed_at: Optional[datetime] = None
    author: Optional[str] = None

    def to_event(self) -> Event:
        """Rebuild the event as it was at this revision."""
        return Event(title=self.title, date=self.date, id=self.entity_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entity_id': self.entity_id,
            'revision_number': self.revision_number,
            'revision_type': self.revision_type.name,
            'title': self.title,
            'date': self.date.isoformat() if self.date else None,
            'committed_at': self.committed_at.isoformat() if self.committed_at else None,
            'author': self.author,
        }

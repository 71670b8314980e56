"""History service for audit trail management."""

import logging
from typing import List, Dict, Any

from sqlalchemy.orm import Session

from ..domain import Event, Revision, RevisionType
from ..repositories.event_store import EventStore
from .audit_reader import AuditReader

logger = logging.getLogger(__name__)


class HistoryService:
    """Service for comparing, summarising and reverting event history."""

    def __init__(self, session: Session):
        self.session = session
        self.store = EventStore(session)
        self.reader = AuditReader(session)

    def compare_revisions(
        self,
        entity_id: int,
        revision1: int,
        revision2: int
    ) -> Dict[str, Any]:
        """Compare an event at two revisions and return the differences."""
        data1 = self.reader.find_as_of(entity_id, revision1).to_dict()
        data2 = self.reader.find_as_of(entity_id, revision2).to_dict()

        changed = {}
        for key in data1:
            if data1[key] != data2[key]:
                changed[key] = {
                    'from': data1[key],
                    'to': data2[key]
                }

        return {
            'entity_id': entity_id,
            'revision1': revision1,
            'revision2': revision2,
            'changed': changed,
        }

    def get_audit_summary(self, entity_id: int) -> Dict[str, Any]:
        """Get an audit summary for an event."""
        revisions = self.reader.history(entity_id)

        if not revisions:
            return {
                'entity_id': entity_id,
                'total_revisions': 0,
                'first_revision': None,
                'last_revision': None,
                'first_created': None,
                'last_modified': None,
                'change_counts': {},
                'authors': [],
                'deleted': False,
            }

        change_counts: Dict[str, int] = {}
        for revision in revisions:
            name = revision.revision_type.name
            change_counts[name] = change_counts.get(name, 0) + 1

        first, last = revisions[0], revisions[-1]
        return {
            'entity_id': entity_id,
            'total_revisions': len(revisions),
            'first_revision': first.revision_number,
            'last_revision': last.revision_number,
            'first_created': first.committed_at.isoformat() if first.committed_at else None,
            'last_modified': last.committed_at.isoformat() if last.committed_at else None,
            'change_counts': change_counts,
            'authors': sorted({r.author for r in revisions if r.author}),
            'deleted': last.revision_type == RevisionType.DEL,
        }

    def get_recent_changes(self, limit: int = 50) -> List[Revision]:
        """Get recent revisions across all events, newest first."""
        return self.reader.revision_log.recent(limit)

    def revert_to_revision(self, entity_id: int, revision_number: int) -> Event:
        """Bring an event back to its state at ``revision_number``.

        The revert is recorded as a new revision: a MOD when the event still
        exists, an ADD when it had been deleted. Reverting a live event to
        the state it already has records nothing.

        Raises:
            RevisionNotFoundError: the event did not exist at that revision.
        """
        target = self.reader.find_as_of(entity_id, revision_number)

        if self.store.get(entity_id) is None:
            self.store.restore(target)
        else:
            self.store.update(entity_id, {'title': target.title, 'date': target.date})

        logger.info(f"Reverted event {entity_id} to revision {revision_number}")
        return self.store.read(entity_id)

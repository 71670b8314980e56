"""Audit reader: point-in-time reads over the revision log."""

from datetime import datetime
from typing import List

from sqlalchemy import select, desc, func, and_
from sqlalchemy.orm import Session

from ..domain import Event, Revision, RevisionType
from ..exceptions import RevisionNotFoundError
from ..models.revision import EventAuditRecord, RevisionInfo
from ..repositories.revision_log import RevisionLog


def _check_revision_number(revision_number: int) -> None:
    if revision_number < 1:
        raise ValueError(f"Revision numbers start at 1, got {revision_number}")


class AuditReader:
    """Rebuilds past event state from the revision log.

    Lookups return the snapshot exactly as committed or raise
    ``RevisionNotFoundError``. Nothing is interpolated.
    """

    def __init__(self, session: Session):
        self.session = session
        self.revision_log = RevisionLog(session)

    def find_as_of(self, entity_id: int, revision_number: int) -> Event:
        """Get an event as it was at ``revision_number``.

        Uses the latest revision of the event at or before the requested
        number.

        Raises:
            ValueError: ``revision_number`` is not positive.
            RevisionNotFoundError: the event did not exist at that revision.
        """
        _check_revision_number(revision_number)
        query = (
            select(EventAuditRecord)
            .where(EventAuditRecord.id == entity_id)
            .where(EventAuditRecord.rev <= revision_number)
            .order_by(desc(EventAuditRecord.rev))
            .limit(1)
        )
        record = self.session.execute(query).scalar_one_or_none()
        if record is None:
            raise RevisionNotFoundError(
                f"Event {entity_id} has no revision at or before {revision_number}",
                entity_id=entity_id,
                revision_number=revision_number
            )
        if record.revision_type == RevisionType.DEL:
            raise RevisionNotFoundError(
                f"Event {entity_id} was deleted at revision {record.rev}",
                entity_id=entity_id,
                revision_number=revision_number
            )
        return record.to_event()

    def find_revision(self, entity_id: int, revision_number: int) -> Revision:
        """Get the revision of an event with exactly this number."""
        _check_revision_number(revision_number)
        record = self.session.get(EventAuditRecord, (entity_id, revision_number))
        if record is None:
            raise RevisionNotFoundError(
                f"Revision {revision_number} not found for event {entity_id}",
                entity_id=entity_id,
                revision_number=revision_number
            )
        return record.to_domain()

    def revisions_of(self, entity_id: int) -> List[int]:
        """Get the revision numbers that changed an event, ascending."""
        query = (
            select(EventAuditRecord.rev)
            .where(EventAuditRecord.id == entity_id)
            .order_by(EventAuditRecord.rev)
        )
        return list(self.session.execute(query).scalars().all())

    def history(self, entity_id: int) -> List[Revision]:
        """Get every revision of an event, oldest first, deletions included."""
        return self.revision_log.history(entity_id)

    def revision_date(self, revision_number: int) -> datetime:
        """Get the timestamp of a revision."""
        _check_revision_number(revision_number)
        info = self.session.get(RevisionInfo, revision_number)
        if info is None:
            raise RevisionNotFoundError(
                f"Revision {revision_number} not found",
                revision_number=revision_number
            )
        return info.committed_at

    def revision_number_for_date(self, when: datetime) -> int:
        """Get the highest revision committed at or before ``when``."""
        query = select(func.max(RevisionInfo.rev)).where(RevisionInfo.committed_at <= when)
        revision_number = self.session.execute(query).scalar_one_or_none()
        if revision_number is None:
            raise RevisionNotFoundError(f"No revision committed at or before {when.isoformat()}")
        return revision_number

    def find_entities_at(self, revision_number: int) -> List[Event]:
        """Get every event that existed at ``revision_number``, ordered by id."""
        _check_revision_number(revision_number)
        latest = (
            select(
                EventAuditRecord.id.label('id'),
                func.max(EventAuditRecord.rev).label('rev')
            )
            .where(EventAuditRecord.rev <= revision_number)
            .group_by(EventAuditRecord.id)
            .subquery()
        )
        query = (
            select(EventAuditRecord)
            .join(latest, and_(
                EventAuditRecord.id == latest.c.id,
                EventAuditRecord.rev == latest.c.rev
            ))
            .where(EventAuditRecord.revtype != int(RevisionType.DEL))
            .order_by(EventAuditRecord.id)
        )
        return [record.to_event() for record in self.session.execute(query).scalars().all()]

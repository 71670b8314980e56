"""Append-only revision log for events."""

import logging
from typing import List, Optional

from sqlalchemy import select, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import AUTHOR_KEY, REVISION_KEY
from ..domain import Event, Revision, RevisionType
from ..exceptions import ConflictError
from ..models.base import utcnow
from ..models.revision import EventAuditRecord, RevisionInfo

logger = logging.getLogger(__name__)


def merge_revision_types(pending: RevisionType, incoming: RevisionType) -> Optional[RevisionType]:
    """Combine two changes to the same event made in one transaction.

    Returns ``None`` when the changes cancel out (created and deleted in the
    same transaction), in which case no audit row is kept.
    """
    if pending == RevisionType.ADD:
        if incoming == RevisionType.DEL:
            return None
        return RevisionType.ADD
    if pending == RevisionType.DEL:
        # Deleted then restored within one transaction
        return RevisionType.MOD if incoming == RevisionType.ADD else incoming
    return incoming


class RevisionLog:
    """Records one immutable snapshot per event per committing transaction.

    Revision numbers are global: the first append in a transaction inserts a
    ``revinfo`` row and every event changed by that transaction shares its
    number. Numbers therefore increase strictly for each event but are not
    contiguous per event.
    """

    def __init__(self, session: Session):
        self.session = session

    def current_revision(self) -> RevisionInfo:
        """Get the revision of the running transaction, allocating it if needed."""
        info = self.session.info.get(REVISION_KEY)
        if info is None:
            info = RevisionInfo(
                committed_at=utcnow(),
                author=self.session.info.get(AUTHOR_KEY)
            )
            self.session.add(info)
            self.session.flush()  # Get the revision number
            self.session.info[REVISION_KEY] = info
            logger.debug(f"Allocated revision {info.rev}")
        return info

    def append(self, entity_id: int, revision_type: RevisionType, snapshot: Event) -> int:
        """Append a snapshot of ``entity_id`` and return its revision number.

        Raises:
            ConflictError: a revision at or after the allocated number was
                already committed for this event.
        """
        revision = self.current_revision()
        revision_number = revision.rev

        pending = self.session.get(EventAuditRecord, (entity_id, revision_number))
        if pending is not None:
            merged = merge_revision_types(pending.revision_type, revision_type)
            if merged is None:
                self.session.delete(pending)
                self.session.flush()
                self._release_if_unused(revision)
            else:
                pending.revtype = int(merged)
                pending.title = snapshot.title
                pending.date = snapshot.date
            self.session.flush()
            logger.debug(
                f"Merged {revision_type.name} for event {entity_id} into revision {revision_number}"
            )
            return revision_number

        latest = self.latest_revision_number(entity_id)
        if latest is not None and latest >= revision_number:
            logger.warning(
                f"Revision conflict for event {entity_id}: "
                f"revision {latest} already committed, allocated {revision_number}"
            )
            raise ConflictError(
                f"Event {entity_id} already has revision {latest}, "
                f"cannot append revision {revision_number}",
                entity_id=entity_id,
                revision_number=revision_number
            )

        record = EventAuditRecord.from_snapshot(
            entity_id=entity_id,
            revision_number=revision_number,
            revision_type=revision_type,
            snapshot=snapshot
        )
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Revision {revision_number} for event {entity_id} already exists",
                entity_id=entity_id,
                revision_number=revision_number
            ) from e

        logger.debug(f"Appended {revision_type.name} for event {entity_id} at revision {revision_number}")
        return revision_number

    def _release_if_unused(self, revision: RevisionInfo) -> None:
        """Drop the transaction's revision once no audit row refers to it."""
        query = select(func.count()).select_from(EventAuditRecord).where(
            EventAuditRecord.rev == revision.rev
        )
        if self.session.execute(query).scalar_one():
            return
        self.session.delete(revision)
        self.session.info.pop(REVISION_KEY, None)
        logger.debug(f"Released unused revision {revision.rev}")

    def latest_revision_number(self, entity_id: int) -> Optional[int]:
        """Get the highest revision number recorded for an event."""
        query = select(func.max(EventAuditRecord.rev)).where(EventAuditRecord.id == entity_id)
        return self.session.execute(query).scalar_one_or_none()

    def latest(self, entity_id: int) -> Optional[Revision]:
        """Get the latest revision of an event."""
        query = (
            select(EventAuditRecord)
            .where(EventAuditRecord.id == entity_id)
            .order_by(desc(EventAuditRecord.rev))
            .limit(1)
        )
        record = self.session.execute(query).scalar_one_or_none()
        return record.to_domain() if record else None

    def history(self, entity_id: int, limit: Optional[int] = None) -> List[Revision]:
        """Get all revisions of an event, oldest first."""
        query = (
            select(EventAuditRecord)
            .where(EventAuditRecord.id == entity_id)
            .order_by(EventAuditRecord.rev)
        )
        if limit:
            query = query.limit(limit)
        return [record.to_domain() for record in self.session.execute(query).scalars().all()]

    def recent(self, limit: int = 50) -> List[Revision]:
        """Get the most recent revisions across all events, newest first."""
        query = (
            select(EventAuditRecord)
            .order_by(desc(EventAuditRecord.rev), EventAuditRecord.id)
            .limit(limit)
        )
        return [record.to_domain() for record in self.session.execute(query).scalars().all()]

    def current_revision_number(self) -> Optional[int]:
        """Get the highest revision number allocated so far."""
        return self.session.execute(select(func.max(RevisionInfo.rev))).scalar_one_or_none()

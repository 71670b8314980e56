"""Revision models for the audit trail."""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, SmallInteger, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..domain import Event, Revision, RevisionType
from .base import Base, utcnow


class RevisionInfo(Base):
    """One row per committing transaction that changed at least one event.

    ``rev`` is allocated by the database so numbers are globally increasing
    and never reused, even after a rollback.
    """

    __tablename__ = 'revinfo'

    rev: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    committed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index('idx_revinfo_committed', 'committed_at'),
        {'sqlite_autoincrement': True},
    )


class EventAuditRecord(Base):
    """Append-only snapshot of an event, keyed by (event id, revision).

    No foreign key to ``tb_event``: history outlives the live row.
    """

    __tablename__ = 'tb_event_aud'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    rev: Mapped[int] = mapped_column(Integer, ForeignKey('revinfo.rev'), primary_key=True)
    revtype: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column('event_date', DateTime, nullable=False)

    revision_info: Mapped[RevisionInfo] = relationship(RevisionInfo, lazy='joined')

    __table_args__ = (
        Index('idx_event_aud_rev', 'rev'),
    )

    @property
    def revision_type(self) -> RevisionType:
        return RevisionType(self.revtype)

    @classmethod
    def from_snapshot(
        cls,
        entity_id: int,
        revision_number: int,
        revision_type: RevisionType,
        snapshot: Event
    ) -> "EventAuditRecord":
        """Create an audit row from an event snapshot."""
        return cls(
            id=entity_id,
            rev=revision_number,
            revtype=int(revision_type),
            title=snapshot.title,
            date=snapshot.date
        )

    def to_domain(self) -> Revision:
        info = self.revision_info
        return Revision(
            entity_id=self.id,
            revision_number=self.rev,
            revision_type=self.revision_type,
            title=self.title,
            date=self.date,
            committed_at=info.committed_at if info else None,
            author=info.author if info else None,
        )

    def to_event(self) -> Event:
        return Event(title=self.title, date=self.date, id=self.id)

"""Event model for the live-state table."""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from ..domain import Event
from .base import Base, as_naive_utc


class EventRecord(Base):
    """One row per live event."""

    __tablename__ = 'tb_event'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column('event_date', DateTime, nullable=False)

    @classmethod
    def from_domain(cls, event: Event, keep_id: bool = False) -> "EventRecord":
        """Build a row from a domain event.

        The id is left to the database unless ``keep_id`` is set, which is
        only used when restoring a deleted event under its original id. Aware
        dates are stored as naive UTC.
        """
        record = cls(title=event.title, date=as_naive_utc(event.date))
        if keep_id:
            record.id = event.id
        return record

    def to_domain(self) -> Event:
        return Event(title=self.title, date=self.date, id=self.id)

    def snapshot(self) -> Dict[str, Any]:
        """Audited column values, keyed by domain field name."""
        return {'title': self.title, 'date': self.date}

    def __repr__(self) -> str:
        return f"EventRecord(id={self.id!r}, title={self.title!r}, date={self.date!r})"

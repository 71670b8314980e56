"""SQLAlchemy ORM models."""

from .base import Base, as_naive_utc, utcnow
from .event import EventRecord
from .revision import RevisionInfo, EventAuditRecord

__all__ = [
    'Base',
    'utcnow',
    'as_naive_utc',
    'EventRecord',
    'RevisionInfo',
    'EventAuditRecord',
]

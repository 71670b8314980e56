"""
eventaudit persistence layer

SQLite-first storage with SQLAlchemy ORM for events, with a full audit trail:
every committed change appends an immutable revision, and any past revision
can be read back.
"""

from .config import DatabaseConfig
from .database import Database, init_database
from .domain import Event, Revision, RevisionType
from .exceptions import (
    PersistenceError,
    NotFoundError,
    EventNotFoundError,
    RevisionNotFoundError,
    ConflictError,
)
from .repositories import EventStore, RevisionLog
from .services import AuditReader, HistoryService, ExportService

__version__ = "0.1.0"

__all__ = [
    'DatabaseConfig',
    'Database',
    'init_database',
    'Event',
    'Revision',
    'RevisionType',
    'PersistenceError',
    'NotFoundError',
    'EventNotFoundError',
    'RevisionNotFoundError',
    'ConflictError',
    'EventStore',
    'RevisionLog',
    'AuditReader',
    'HistoryService',
    'ExportService',
]

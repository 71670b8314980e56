"""Repository implementations for database access."""

from .base import BaseRepository
from .event_store import EventStore
from .revision_log import RevisionLog, merge_revision_types

__all__ = [
    'BaseRepository',
    'EventStore',
    'RevisionLog',
    'merge_revision_types',
]

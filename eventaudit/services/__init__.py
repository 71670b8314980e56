"""Services built on top of the event store and revision log."""

from .audit_reader import AuditReader
from .history_service import HistoryService
from .export_service import ExportService

__all__ = [
    'AuditReader',
    'HistoryService',
    'ExportService',
]

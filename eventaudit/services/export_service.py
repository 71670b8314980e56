"""Export service for writing events and their history to JSON."""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..exceptions import EventNotFoundError
from ..models.base import utcnow
from ..repositories.event_store import EventStore
from .audit_reader import AuditReader

logger = logging.getLogger(__name__)


class ExportService:
    """Service for exporting events and revision history to JSON files."""

    def __init__(self, session: Session):
        self.session = session
        self.store = EventStore(session)
        self.reader = AuditReader(session)

    def export_history(
        self,
        entity_id: int,
        output_path: Path,
        include_metadata: bool = False
    ) -> Path:
        """Export the full revision history of one event to a JSON file.

        Args:
            entity_id: ID of the event, live or deleted
            output_path: Directory to save the file
            include_metadata: Include export metadata in JSON

        Returns:
            Path to the created file
        """
        revisions = self.reader.history(entity_id)
        if not revisions:
            raise EventNotFoundError(entity_id)

        data: Dict[str, Any] = {
            'entity_id': entity_id,
            'revisions': [revision.to_dict() for revision in revisions],
        }
        if include_metadata:
            data['_export_metadata'] = {
                'current_revision': self.reader.revision_log.current_revision_number(),
                'export_timestamp': utcnow().isoformat()
            }

        output_path.mkdir(parents=True, exist_ok=True)
        output_file = output_path / f"event_{entity_id}_history.json"

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

        logger.info(f"Exported {len(revisions)} revisions of event {entity_id} to {output_file}")
        return output_file

    def export_events(
        self,
        output_path: Path,
        filename: str = "events.json"
    ) -> Path:
        """Export the current state of all live events to a single JSON file.

        Args:
            output_path: Directory to save the file
            filename: Name of the output file

        Returns:
            Path to the created file
        """
        events = [event.to_dict() for event in self.store.find_all()]

        output_path.mkdir(parents=True, exist_ok=True)
        output_file = output_path / filename

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump({
                'revision': self.reader.revision_log.current_revision_number(),
                'events': events,
            }, f, indent=2)

        logger.info(f"Exported {len(events)} events to {output_file}")
        return output_file

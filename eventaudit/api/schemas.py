"""
Pydantic models for the eventaudit REST API.

Request/response models for the event and revision endpoints.
"""

from datetime import datetime
from typing import Optional, Any, Dict

from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# Event Models
# ============================================================================

class EventCreateRequest(BaseModel):
    """Request to create an event."""
    title: str = Field(..., min_length=1, max_length=255, description="Event title")
    date: Optional[datetime] = Field(None, description="When the event happens, defaults to now")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Release planning",
                "date": "2026-10-19T14:00:00"
            }
        }
    )


class EventUpdateRequest(BaseModel):
    """Partial update of an event. Only the fields sent are changed."""
    title: Optional[str] = Field(None, min_length=1, max_length=255, description="New title")
    date: Optional[datetime] = Field(None, description="New date")


class EventResponse(BaseModel):
    """Current or historical state of an event."""
    id: int = Field(..., description="Event ID")
    title: str = Field(..., description="Event title")
    date: datetime = Field(..., description="Event date")

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Revision Models
# ============================================================================

class RevisionResponse(BaseModel):
    """One committed revision of an event."""
    entity_id: int = Field(..., description="Event ID")
    revision_number: int = Field(..., description="Global revision number")
    revision_type: str = Field(..., description="ADD, MOD or DEL")
    title: str = Field(..., description="Title snapshot")
    date: datetime = Field(..., description="Date snapshot")
    committed_at: Optional[datetime] = Field(None, description="Commit timestamp (UTC)")
    author: Optional[str] = Field(None, description="Who made the change")


class RevisionInfoResponse(BaseModel):
    """Metadata of a revision number."""
    revision_number: int = Field(..., description="Global revision number")
    committed_at: datetime = Field(..., description="Commit timestamp (UTC)")


class DiffResponse(BaseModel):
    """Differences of an event between two revisions."""
    entity_id: int
    revision1: int
    revision2: int
    changed: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

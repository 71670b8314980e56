"""
Event REST API endpoints.

Provides endpoints for:
- Event CRUD
- Revision history, point-in-time reads and diffs
- Revert to a previous revision
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from ..database import Database
from ..domain import Event
from ..exceptions import ConflictError, NotFoundError
from ..repositories import EventStore
from ..services import AuditReader, HistoryService
from .schemas import (
    DiffResponse,
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    RevisionInfoResponse,
    RevisionResponse,
)


def get_database(request: Request) -> Database:
    """Get the storage handle the app was created with."""
    return request.app.state.database


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


router = APIRouter()


# ============================================================================
# Events
# ============================================================================

@router.get(
    "/events",
    response_model=List[EventResponse],
    summary="List events",
)
async def list_events(database: Database = Depends(get_database)) -> List[EventResponse]:
    """List all live events."""
    with database.session() as session:
        events = EventStore(session).find_all()
    return [EventResponse.model_validate(event) for event in events]


@router.post(
    "/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(
    request: EventCreateRequest,
    database: Database = Depends(get_database),
    x_audit_user: Optional[str] = Header(None),
) -> EventResponse:
    """Create an event. Records an ADD revision."""
    try:
        with database.transaction(author=x_audit_user) as session:
            store = EventStore(session)
            event_id = store.create(Event(title=request.title, date=request.date or datetime.now()))
            event = store.read(event_id)
    except (NotFoundError, ConflictError, ValueError) as e:
        raise _http_error(e)
    return EventResponse.model_validate(event)


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Get event",
)
async def get_event(event_id: int, database: Database = Depends(get_database)) -> EventResponse:
    """Get the current state of an event."""
    try:
        with database.session() as session:
            event = EventStore(session).read(event_id)
    except NotFoundError as e:
        raise _http_error(e)
    return EventResponse.model_validate(event)


@router.patch(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Update event",
)
async def update_event(
    event_id: int,
    request: EventUpdateRequest,
    database: Database = Depends(get_database),
    x_audit_user: Optional[str] = Header(None),
) -> EventResponse:
    """Update an event. Records a MOD revision when something changed."""
    patch = request.model_dump(exclude_unset=True, exclude_none=True)
    try:
        with database.transaction(author=x_audit_user) as session:
            store = EventStore(session)
            store.update(event_id, patch)
            event = store.read(event_id)
    except (NotFoundError, ConflictError, ValueError) as e:
        raise _http_error(e)
    return EventResponse.model_validate(event)


@router.delete(
    "/events/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete event",
)
async def delete_event(
    event_id: int,
    database: Database = Depends(get_database),
    x_audit_user: Optional[str] = Header(None),
) -> Response:
    """Delete an event. Its history is kept."""
    try:
        with database.transaction(author=x_audit_user) as session:
            EventStore(session).delete(event_id)
    except (NotFoundError, ConflictError) as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Revision History
# ============================================================================

@router.get(
    "/events/{event_id}/revisions",
    response_model=List[RevisionResponse],
    summary="Get event revision history",
)
async def get_event_revisions(
    event_id: int,
    database: Database = Depends(get_database),
) -> List[RevisionResponse]:
    """Get every revision of an event, oldest first."""
    with database.session() as session:
        revisions = AuditReader(session).history(event_id)
    if not revisions:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} has no history"
        )
    return [RevisionResponse(**revision.to_dict()) for revision in revisions]


@router.get(
    "/events/{event_id}/revisions/{revision}",
    response_model=EventResponse,
    summary="Get event as of a revision",
)
async def get_event_as_of(
    event_id: int,
    revision: int,
    database: Database = Depends(get_database),
) -> EventResponse:
    """Get the state of an event as of a revision number."""
    try:
        with database.session() as session:
            event = AuditReader(session).find_as_of(event_id, revision)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return EventResponse.model_validate(event)


@router.get(
    "/events/{event_id}/diff/{revision1}/{revision2}",
    response_model=DiffResponse,
    summary="Compare event revisions",
)
async def diff_event(
    event_id: int,
    revision1: int,
    revision2: int,
    database: Database = Depends(get_database),
) -> DiffResponse:
    """Compare an event at two revisions."""
    try:
        with database.session() as session:
            diff = HistoryService(session).compare_revisions(event_id, revision1, revision2)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return DiffResponse(**diff)


@router.post(
    "/events/{event_id}/revert/{revision}",
    response_model=EventResponse,
    summary="Revert event to revision",
)
async def revert_event(
    event_id: int,
    revision: int,
    database: Database = Depends(get_database),
    x_audit_user: Optional[str] = Header(None),
) -> EventResponse:
    """Revert an event to a previous revision."""
    try:
        with database.transaction(author=x_audit_user) as session:
            event = HistoryService(session).revert_to_revision(event_id, revision)
    except (NotFoundError, ConflictError, ValueError) as e:
        raise _http_error(e)
    return EventResponse.model_validate(event)


@router.get(
    "/revisions/{revision}",
    response_model=RevisionInfoResponse,
    summary="Get revision metadata",
)
async def get_revision(revision: int, database: Database = Depends(get_database)) -> RevisionInfoResponse:
    """Get the commit timestamp of a revision number."""
    try:
        with database.session() as session:
            committed_at = AuditReader(session).revision_date(revision)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return RevisionInfoResponse(revision_number=revision, committed_at=committed_at)

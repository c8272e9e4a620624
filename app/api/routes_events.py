"""
Event API routes - requires authentication
"""

import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_store
from app.schemas.event import EventCreate, EventUpdate
from app.services.repositories import EventRepo, GuestRepo, TableRepo
from app.services.store import DocumentStore
from app.utils.responses import success_response, error_response
from app.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/events")
async def list_events(
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """List the caller's events with guest and table counts"""
    events = []
    for event in EventRepo.list(store, user_id):
        guests = GuestRepo.list(store, user_id, event["id"])
        tables = TableRepo.list(store, user_id, event["id"])
        events.append({**event, "_count": {"guests": len(guests), "tables": len(tables)}})

    return success_response(events=events)


@router.post("/events")
async def create_event(
    event_data: EventCreate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Create a new event"""
    event = EventRepo.create(store, user_id, event_data.model_dump())
    logger.info(f"Created event {event['id']} for user {user_id}")
    return success_response(event=event)


@router.get("/events/{event_id}")
async def get_event_details(
    event_id: str,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Event with its guests (each with its table) and tables (each with its guests)"""
    event = EventRepo.get(store, user_id, event_id)
    if not event:
        return error_response("Event not found", status_code=404)

    guests = GuestRepo.list(store, user_id, event_id)
    tables = TableRepo.list(store, user_id, event_id)
    tables_by_id = {t["id"]: t for t in tables}

    return success_response(event={
        **event,
        "guests": [{**g, "table": tables_by_id.get(g.get("tableId"))} for g in guests],
        "tables": [
            {**t, "guests": [g for g in guests if g.get("tableId") == t["id"]]}
            for t in tables
        ],
        "_count": {"guests": len(guests), "tables": len(tables)},
    })


@router.patch("/events/{event_id}")
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    if not EventRepo.get(store, user_id, event_id):
        return error_response("Event not found", status_code=404)

    updates = event_data.updates()
    if updates:
        EventRepo.update(store, user_id, event_id, updates)

    return success_response(
        event=EventRepo.get(store, user_id, event_id),
        message="Event updated successfully",
    )


@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Delete the event with all of its guests and tables"""
    if not EventRepo.get(store, user_id, event_id):
        return error_response("Event not found", status_code=404)

    EventRepo.delete(store, user_id, event_id)
    return success_response(message="Event deleted successfully")


@router.post("/events/{event_id}/reset")
async def reset_event(
    event_id: str,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Drop all tables of the event and unassign its guests"""
    if not EventRepo.get(store, user_id, event_id):
        return error_response("Event not found", status_code=404)

    EventRepo.reset(store, user_id, event_id)
    return success_response(message="Event reset successfully")


@router.delete("/events/{event_id}/guests")
async def remove_event_guests(
    event_id: str,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    if not EventRepo.get(store, user_id, event_id):
        return error_response("Event not found", status_code=404)

    removed = GuestRepo.delete_by_event(store, user_id, event_id)
    if not removed:
        return success_response(message="No guests to remove", removedCount=0)

    return success_response(
        message=f"Successfully removed {removed} guests from the event",
        removedCount=removed,
    )

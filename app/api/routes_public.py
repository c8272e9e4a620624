"""
Public API routes - no authentication required
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.api.deps import get_store
from app.core.config import settings
from app.services.repositories import EventRepo, GuestRepo, TableRepo
from app.services.seating_service import SeatingService
from app.services.store import DocumentStore
from app.utils.responses import success_response, error_response, rate_limit_error
from app.utils.security import rate_limit_check, get_client_ip

router = APIRouter()

PUBLIC_EVENT_FIELDS = (
    "id",
    "name",
    "description",
    "theme",
    "customTitle",
    "customSubtitle",
    "customWelcomeMessage",
)


@router.get("/public/events/{event_id}")
async def get_public_event(
    event_id: str,
    request: Request,
    store: DocumentStore = Depends(get_store)
):
    """Basic event information for the guest-facing page"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_error()

    event = EventRepo.get_public(store, event_id)
    if not event:
        return error_response("Event not found", status_code=404)

    return success_response(event={field: event.get(field) for field in PUBLIC_EVENT_FIELDS})


@router.get("/public/find-guest")
async def public_find_guest(
    request: Request,
    name: Optional[str] = None,
    event_id: Optional[str] = Query(None, alias="eventId"),
    autocomplete: Optional[str] = None,
    store: DocumentStore = Depends(get_store)
):
    """Guest lookup by name; ``autocomplete=true`` returns suggestions instead"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_error()

    if not event_id:
        return error_response("Event ID is required", status_code=400)

    if autocomplete == "true":
        if not name or len(name) < 2:
            return success_response(suggestions=[])
        guests = GuestRepo.list_public(store, event_id)
        return success_response(suggestions=SeatingService.suggestions(guests, name))

    if not name or not name.strip():
        return error_response("Name parameter is required", status_code=400)

    guests = GuestRepo.list_public(store, event_id)
    tables = TableRepo.list_public(store, event_id)
    guest = SeatingService.find_guest(guests, tables, name, include_color=True)
    if not guest:
        return error_response("Guest not found")

    return success_response(guest=guest)


@router.get("/public/firebase-config")
async def firebase_config():
    """Web SDK configuration for the browser client"""
    return success_response(config=settings.firebase_web_config())

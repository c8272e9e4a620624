"""
Guest API routes - requires authentication
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_store
from app.schemas.guest import GuestCreate, GuestUpdate
from app.services.repositories import EventRepo, GuestRepo, TableRepo
from app.services.seating_service import SeatingService
from app.services.store import DocumentStore
from app.utils.responses import success_response, error_response
from app.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/guests")
async def list_guests(
    event_id: Optional[str] = Query(None, alias="eventId"),
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """List guests; scoped to one event each guest carries its table"""
    guests = GuestRepo.list(store, user_id, event_id)
    if event_id:
        tables_by_id = {t["id"]: t for t in TableRepo.list(store, user_id, event_id)}
        guests = [{**g, "table": tables_by_id.get(g.get("tableId"))} for g in guests]

    return success_response(guests=guests)


@router.post("/guests")
async def create_guest(
    guest_data: GuestCreate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    if not EventRepo.get(store, user_id, guest_data.event_id):
        return error_response("Event not found or access denied", status_code=404)

    data = guest_data.model_dump(by_alias=True, exclude_none=True)
    if not guest_data.first_name and not guest_data.last_name:
        parts = guest_data.name.split()
        data["firstName"] = parts[0]
        if len(parts) > 1:
            data["lastName"] = " ".join(parts[1:])

    guest_id = GuestRepo.create(store, user_id, data)
    return success_response(guest=GuestRepo.get(store, user_id, guest_id))


@router.patch("/guests")
async def update_guest(
    guest_data: GuestUpdate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Rename a guest, change the phone number, or move them"""
    guest = GuestRepo.get(store, user_id, guest_data.id)
    if not guest:
        return error_response("Guest not found or access denied", status_code=404)

    updates = {"name": guest_data.name}
    if guest_data.phone_number is not None:
        updates["phoneNumber"] = guest_data.phone_number.strip() or None
    if "tableId" in guest_data.updates():
        SeatingService.table_for_guest(store, user_id, guest, guest_data.table_id)
        updates["tableId"] = guest_data.table_id or None
    GuestRepo.update(store, user_id, guest_data.id, updates)

    return success_response(guest=GuestRepo.get(store, user_id, guest_data.id))


@router.delete("/guests")
async def delete_guests(
    id: Optional[str] = None,
    ids: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Delete one guest by ``id`` or several by comma-separated ``ids``"""
    if ids:
        guest_ids = [i for i in ids.split(",") if i]
        deleted = GuestRepo.delete(store, user_id, guest_ids)
        return success_response(message=f"Deleted {deleted} guests", deletedCount=deleted)

    if id:
        if not GuestRepo.delete(store, user_id, [id]):
            return error_response("Guest not found or access denied", status_code=404)
        return success_response(message="Guest deleted successfully", deletedCount=1)

    return error_response("Guest ID(s) required", status_code=400)


@router.get("/find-guest")
async def find_guest(
    name: Optional[str] = None,
    event_id: Optional[str] = Query(None, alias="eventId"),
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Look up one of the caller's guests by name, email or phone"""
    if not name or not name.strip():
        return error_response("Name parameter is required", status_code=400)

    guests = GuestRepo.list(store, user_id, event_id)
    tables = TableRepo.list(store, user_id, event_id) if event_id else []
    guest = SeatingService.find_guest(guests, tables, name)
    if not guest:
        return error_response("Guest not found")

    return success_response(guest=guest)

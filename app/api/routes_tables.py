"""
Table and seating API routes - requires authentication
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_store
from app.schemas.table import (
    AutoAssign,
    BatchAssignment,
    BatchRename,
    TableAssign,
    TableGenerate,
    TableUpdate,
)
from app.services.batch_writer import save_assignment_changes
from app.services.exceptions import NotFoundError, ValidationError
from app.services.repositories import EventRepo, TableRepo
from app.services.seating_service import SeatingService
from app.services.store import DocumentStore
from app.services.table_naming import NAMING_TYPES
from app.utils.responses import success_response, error_response
from app.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_RETRY_AFTER_MS = 5000


@router.get("/tables")
async def list_tables(
    event_id: Optional[str] = Query(None, alias="eventId"),
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Tables with their seated guests, plus everyone still unassigned"""
    if not event_id:
        return error_response("Event ID is required", status_code=400)

    tables, unassigned = SeatingService.get_tables_with_guests(store, user_id, event_id)
    return success_response(tables=tables, unassignedGuests=unassigned)


@router.post("/tables")
async def generate_tables(
    request: TableGenerate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Replace every table of the event with a fresh set"""
    if not EventRepo.get(store, user_id, request.event_id):
        return error_response("Event not found or access denied", status_code=404)

    try:
        tables = SeatingService.regenerate_tables(
            store, user_id, request.event_id, request.num_tables,
            request.name_type, request.custom_prefix,
        )
    except ValidationError as e:
        return error_response(e.message, status_code=400)

    if not tables:
        return success_response(tables=[], message="All tables removed successfully.")
    return success_response(tables=tables)


@router.patch("/tables")
async def assign_guest_to_table(
    request: TableAssign,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    try:
        guest = SeatingService.assign_guest(store, user_id, request.guest_id, request.table_id)
    except NotFoundError as e:
        return error_response(e.message, status_code=404)
    return success_response(guest=guest)


@router.patch("/tables/batch-rename")
async def batch_rename_tables(
    request: BatchRename,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Rename all tables of the event using a naming convention"""
    if request.name_type not in NAMING_TYPES:
        return error_response(f"Unknown naming type: {request.name_type}", status_code=400)

    try:
        tables = SeatingService.rename_tables(
            store, user_id, request.event_id, request.name_type, request.custom_prefix
        )
    except NotFoundError as e:
        return error_response(e.message, status_code=404)

    return success_response(
        message=f"Successfully renamed {len(tables)} tables using {request.name_type} convention",
        tables=tables,
    )


@router.patch("/tables/{table_id}")
async def update_table(
    table_id: str,
    request: TableUpdate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Edit a table's name, capacity or colour"""
    if not TableRepo.get(store, user_id, table_id):
        return error_response("Table not found or access denied", status_code=404)

    updates = {k: v for k, v in request.updates().items() if v is not None}
    if "name" in updates:
        updates["name"] = updates["name"].strip()
        if not updates["name"]:
            return error_response("Table name is required", status_code=400)
    if updates:
        TableRepo.update(store, user_id, table_id, updates)

    return success_response(table=TableRepo.get(store, user_id, table_id))


@router.delete("/tables/{table_id}")
async def delete_table(
    table_id: str,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Delete a table; its guests become unassigned"""
    if not TableRepo.delete(store, user_id, [table_id]):
        return error_response("Table not found or access denied", status_code=404)
    return success_response(message="Table deleted successfully")


@router.post("/assignments/batch")
async def batch_assign(
    request: BatchAssignment,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Apply a list of guest moves (and optional table edits) in chunked batches"""
    guest_changes = [change.model_dump(by_alias=True) for change in request.guest_changes]
    table_changes = [change.model_dump(by_alias=True) for change in request.table_changes]

    if not guest_changes and not table_changes:
        return success_response(message="No changes to process", totalProcessed=0)

    try:
        SeatingService.validate_guest_changes(store, user_id, guest_changes)
        for change in table_changes:
            if not TableRepo.get(store, user_id, change["tableId"]):
                raise NotFoundError(f"Table {change['tableId']} not found or access denied")
    except NotFoundError as e:
        return error_response(e.message, status_code=404)

    logger.info(
        f"Processing batch assignment: {len(guest_changes)} guest changes, {len(table_changes)} table changes"
    )

    try:
        result = await save_assignment_changes(store, guest_changes, table_changes)
    except Exception as e:
        logger.error(f"Error in batch assignment: {e}")
        message = str(e).lower()
        if "quota" in message or "rate" in message:
            return error_response(
                "Rate limit exceeded. Please try again in a few moments.",
                status_code=429,
                retryAfter=RATE_LIMIT_RETRY_AFTER_MS,
            )
        return error_response("Failed to process batch assignment", status_code=500)

    if result.success:
        return success_response(
            message=f"Successfully processed {result.processed_count} changes",
            totalProcessed=result.processed_count,
        )

    logger.error(f"Batch assignment errors: {result.errors}")
    if result.processed_count > 0:
        return error_response(
            f"Partially completed: {result.processed_count} operations succeeded, "
            f"but {len(result.errors)} chunks failed",
            status_code=207,
            totalProcessed=result.processed_count,
            errors=result.errors,
        )

    if any("quota" in err.lower() or "rate" in err.lower() for err in result.errors):
        return error_response(
            "Rate limit exceeded. Please try again in a few moments.",
            status_code=429,
            retryAfter=RATE_LIMIT_RETRY_AFTER_MS,
        )
    return error_response("All operations failed", status_code=500, errors=result.errors)


@router.post("/assign-tables")
async def auto_assign_tables(
    request: AutoAssign,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Deal unassigned guests round-robin across tables with free seats"""
    if not EventRepo.get(store, user_id, request.event_id):
        return error_response("Event not found or access denied", status_code=404)

    try:
        result = await SeatingService.auto_assign(store, user_id, request.event_id)
    except ValidationError as e:
        return error_response(e.message)

    if not result.success:
        logger.error(f"Auto-assign errors: {result.errors}")
        return error_response("Failed to assign tables.", errors=result.errors)

    return success_response(
        message=f"Assigned {result.processed_count} guests to tables.",
        assignedCount=result.processed_count,
    )

"""
Guest list import routes - requires authentication
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_column_inference, get_group_inference, get_store
from app.core.config import settings
from app.schemas.imports import ImportSave
from app.services.excel_service import ExcelService
from app.services.exceptions import ServiceError
from app.services.import_service import ImportService, InferColumns, InferGroups
from app.services.store import DocumentStore
from app.utils.responses import success_response, error_response
from app.utils.security import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/import")
async def upload_guest_list(
    file: UploadFile = File(None),
    event_id: str = Form(None, alias="eventId"),
    commit: bool = Form(False),
    store: DocumentStore = Depends(get_store),
    infer_columns: InferColumns = Depends(get_column_inference),
    infer_groups: InferGroups = Depends(get_group_inference),
    user_id: str = Depends(get_current_user_id)
):
    """Parse an uploaded spreadsheet and preview the guests found in it.

    With ``commit=true`` the previewed guests are saved straight away.
    """
    if file is None:
        return error_response("No file uploaded.")
    if not event_id:
        return error_response("Event ID is required. Please select an event first.")
    if not ExcelService.is_supported_file(file.filename, file.content_type):
        return error_response("Please upload a CSV or Excel file (.csv, .xlsx, .xls)")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        return error_response(f"File size must be less than {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB")

    try:
        preview = ImportService.preview(
            store, user_id, event_id, file.filename, content, infer_columns, infer_groups
        )
        if commit:
            preview["saved"] = await ImportService.save(
                store, user_id, event_id, preview["processedGuests"], preview["detectedGroups"]
            )
    except ServiceError as e:
        logger.warning(f"Import of {file.filename} rejected: {e.message}")
        return error_response(e.message)

    return success_response(**preview)


@router.post("/import/save")
async def save_imported_guests(
    request: ImportSave,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Persist previewed guests, optionally seating each group at its own table"""
    try:
        result = await ImportService.save(
            store,
            user_id,
            request.event_id,
            [guest.model_dump(by_alias=True) for guest in request.guests],
            [group.model_dump(by_alias=True) for group in request.groups],
            auto_table_assignment=request.auto_table_assignment,
        )
    except ServiceError as e:
        return error_response(e.message)

    return success_response(**result)

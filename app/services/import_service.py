"""
Guest list import: preview an uploaded spreadsheet, then persist the chosen rows
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from app.core.config import settings
from app.services.batch_writer import Sleep, bulk_update_guest_assignments
from app.services.column_inference import ColumnMapping
from app.services.excel_service import ExcelService
from app.services.exceptions import NotFoundError, ServiceError, ValidationError
from app.services.repositories import EventRepo, GuestRepo, TableRepo
from app.services.store import DocumentStore
from app.services.table_naming import table_color

logger = logging.getLogger(__name__)

InferColumns = Callable[[List[List[str]]], ColumnMapping]
InferGroups = Callable[[List[Dict[str, Any]], ColumnMapping], List[Dict[str, Any]]]

_NUMBERS = re.compile(r"\d+")


def normalize_label(value: str) -> str:
    return " ".join(value.lower().split())


def match_table(group_info: Optional[str], tables: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Best-effort pick of the table a group value belongs to.

    Tried in order: matching embedded numbers, then substring containment in
    either direction. Returns None when nothing fits.
    """
    if not group_info:
        return None
    label = normalize_label(group_info)
    numbers = _NUMBERS.findall(label)

    if numbers:
        for table in tables:
            if _NUMBERS.findall(normalize_label(table.get("name") or "")) == numbers:
                return table

    for table in tables:
        name = normalize_label(table.get("name") or "")
        if name and (label in name or name in label):
            return table
    return None


class ImportService:
    """Service for the spreadsheet import flow"""

    @staticmethod
    def preview(
        store: DocumentStore,
        user_id: str,
        event_id: str,
        filename: str,
        content: bytes,
        infer_columns: InferColumns,
        infer_groups: Optional[InferGroups] = None,
    ) -> Dict[str, Any]:
        if not EventRepo.get(store, user_id, event_id):
            raise NotFoundError("Event not found. Please select a valid event.")

        rows = ExcelService.read_rows(content, filename)
        if not rows:
            raise ValidationError("File appears to be empty or contains no readable data.")

        mapping = infer_columns(rows)
        guests = ExcelService.map_rows(rows, mapping)
        if not guests:
            raise ValidationError("No valid guest data found in the file.")

        groups = ExcelService.detect_groups(guests, mapping.group_type)
        if not groups and mapping.has_groups and len(guests) > 1 and infer_groups is not None:
            groups = ImportService.suggest_groups(guests, mapping, infer_groups)
        logger.info(f"Import preview for event {event_id}: {len(guests)} guests, {len(groups)} groups")

        message = f"Successfully processed {len(guests)} guests from file."
        if groups:
            message += f" Found {len(groups)} guest groups."
        return {
            "processedGuests": guests,
            "detectedGroups": groups,
            "hasGroups": bool(groups),
            "columnMapping": mapping.to_payload(),
            "fileInfo": {"name": filename, "size": len(content)},
            "message": message,
        }

    @staticmethod
    def suggest_groups(
        guests: List[Dict[str, Any]], mapping: ColumnMapping, infer_groups: InferGroups
    ) -> List[Dict[str, Any]]:
        """Ask the model for groups when the sheet has no usable group values.

        Members without group info get the group's name, so auto table
        assignment can seat them at the group's table.
        """
        try:
            suggested = infer_groups(guests, mapping)
        except ServiceError as e:
            logger.warning(f"AI group detection failed, continuing without groups: {e.message}")
            return []

        by_name = {guest["name"]: guest for guest in guests}
        groups = []
        for number, group in enumerate(suggested, start=1):
            name = str(group.get("name") or f"Group {number}")
            members = [str(member) for member in group["members"]]
            size = group.get("suggestedTableSize")
            entry = ExcelService.group_entry(
                str(group.get("id") or f"group_{number}"),
                name,
                name,
                members,
                size if isinstance(size, int) and not isinstance(size, bool) and size > 0 else None,
            )
            entry["groupType"] = group.get("groupType")
            groups.append(entry)

            for member in members:
                guest = by_name.get(member)
                if guest is not None and not guest.get("groupInfo"):
                    guest["groupInfo"] = name
        return groups

    @staticmethod
    def guest_records(event_id: str, guests: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Selected guests shaped for insertion; nameless rows are dropped"""
        records = []
        for guest in guests:
            if guest.get("selected") is False:
                continue
            name = (guest.get("name") or "").strip()
            if not name:
                continue

            record: Dict[str, Any] = {"name": name, "eventId": event_id}
            for field in ("firstName", "lastName", "phoneNumber", "email"):
                value = (guest.get(field) or "").strip()
                if value:
                    record[field] = value
            group_info = (guest.get("groupInfo") or "").strip()
            if group_info:
                record["notes"] = f"Group: {group_info}"
                record["groupInfo"] = group_info
            records.append(record)
        return records

    @staticmethod
    def _insert(store: DocumentStore, user_id: str, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        batch_size = settings.IMPORT_BATCH_SIZE
        saved: List[Dict[str, Any]] = []
        failed: List[Dict[str, str]] = []

        for start in range(0, len(records), batch_size):
            chunk = records[start:start + batch_size]
            payloads = [{k: v for k, v in r.items() if k != "groupInfo"} for r in chunk]
            try:
                ids = GuestRepo.bulk_create(store, user_id, payloads)
                saved.extend({**r, "id": guest_id} for r, guest_id in zip(chunk, ids))
                continue
            except Exception as e:
                logger.error(f"Batch {start // batch_size + 1} failed: {e}")

            for record, payload in zip(chunk, payloads):
                try:
                    guest_id = GuestRepo.create(store, user_id, payload)
                    saved.append({**record, "id": guest_id})
                except Exception as e:
                    logger.error(f"Failed to create guest {record['name']}: {e}")
                    failed.append({"name": record["name"], "error": str(e)})

        return {"saved": saved, "failed": failed}

    @staticmethod
    def create_group_tables(
        store: DocumentStore, user_id: str, event_id: str, groups: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        existing = len(TableRepo.list(store, user_id, event_id))
        tables = []
        for group in groups:
            if group.get("selected") is False:
                continue
            members = group.get("members") or []
            capacity = max(group.get("suggestedTableSize") or 0, len(members))
            tables.append(TableRepo.create(store, user_id, {
                "name": group["name"],
                "capacity": capacity,
                "color": table_color(existing + len(tables)),
                "eventId": event_id,
            }))
        return tables

    @staticmethod
    async def save(
        store: DocumentStore,
        user_id: str,
        event_id: str,
        guests: List[Dict[str, Any]],
        groups: Optional[List[Dict[str, Any]]] = None,
        auto_table_assignment: bool = False,
        sleep: Sleep = asyncio.sleep,
    ) -> Dict[str, Any]:
        if not EventRepo.get(store, user_id, event_id):
            raise NotFoundError("Event not found or access denied")

        records = ImportService.guest_records(event_id, guests)
        if not records:
            raise ValidationError("No valid guests to import")

        outcome = ImportService._insert(store, user_id, records)
        saved, failed = outcome["saved"], outcome["failed"]

        if len(saved) == len(records):
            message = f"Successfully imported {len(saved)} guests."
        else:
            message = f"Imported {len(saved)} out of {len(records)} guests. {len(failed)} failed."

        result: Dict[str, Any] = {
            "savedCount": len(saved),
            "failedCount": len(failed),
            "failedGuests": failed,
            "message": message,
        }

        if auto_table_assignment and groups:
            tables = ImportService.create_group_tables(store, user_id, event_id, groups)
            changes = []
            for guest in saved:
                table = match_table(guest.get("groupInfo"), tables)
                if table:
                    changes.append({"guestId": guest["id"], "tableId": table["id"]})

            batch_result = await bulk_update_guest_assignments(store, changes, sleep=sleep)
            logger.info(f"Auto-assigned {batch_result.processed_count} imported guests to {len(tables)} tables")
            result["tablesCreated"] = len(tables)
            result["guestsAssigned"] = batch_result.processed_count
            if batch_result.errors:
                result["assignmentErrors"] = batch_result.errors

        return result

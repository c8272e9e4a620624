"""
Client-side seating board: edit assignments locally, then save only the net change.

The board keeps two snapshots of the event's seating. ``original`` is what the
server last reported; the working snapshot is what the user is editing. Saving
sends the difference and then reloads both snapshots from the server.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from app.client.api import ApiClient, ApiError
from app.schemas.table import EDITABLE_TABLE_FIELDS
from app.services.assignment_diff import (
    TEMP_ID_PREFIX,
    compute_guest_changes,
    remap_tables,
    table_structure_changed,
)
from app.services.table_naming import DEFAULT_CAPACITY

logger = logging.getLogger(__name__)

MAX_SAVE_ATTEMPTS = 3
RATE_LIMIT_BACKOFF_SECONDS = 2
PARTIAL_SAVE_MARKER = "Partially completed"


class SaveError(Exception):
    """Saving failed; the board still holds the unsaved edits"""


@dataclass
class SaveResult:
    saved: int
    warning: Optional[str] = None


def _is_rate_limited(error: ApiError) -> bool:
    return error.status_code == 429 or "Rate limit" in error.message


class AssignmentBoard:
    def __init__(self, client: ApiClient, event_id: str, sleep=asyncio.sleep) -> None:
        self.client = client
        self.event_id = event_id
        self._sleep = sleep
        self.original_tables: List[Dict[str, Any]] = []
        self.original_unassigned: List[Dict[str, Any]] = []
        self.tables: List[Dict[str, Any]] = []
        self.unassigned: List[Dict[str, Any]] = []
        self.selected: Set[str] = set()
        self.action_log: List[Dict[str, Any]] = []
        self.has_unsaved_changes = False

    # -------- loading --------

    async def load(self) -> None:
        """Replace both snapshots with the server's current seating"""
        payload = await self.client.get("/api/tables", eventId=self.event_id)
        self.original_tables = payload.get("tables", [])
        self.original_unassigned = payload.get("unassignedGuests", [])
        self.discard()

    def discard(self) -> None:
        """Throw away local edits"""
        self.tables = copy.deepcopy(self.original_tables)
        self.unassigned = copy.deepcopy(self.original_unassigned)
        self.selected.clear()
        self.action_log.clear()
        self.has_unsaved_changes = False

    # -------- lookups --------

    def table_of(self, guest_id: str) -> Optional[str]:
        for table in self.tables:
            if any(g["id"] == guest_id for g in table["guests"]):
                return table["id"]
        return None

    def _table(self, table_id: str) -> Dict[str, Any]:
        for table in self.tables:
            if table["id"] == table_id:
                return table
        raise KeyError(f"Unknown table {table_id}")

    def _take_guest(self, guest_id: str) -> Dict[str, Any]:
        for pool in [self.unassigned] + [t["guests"] for t in self.tables]:
            for index, guest in enumerate(pool):
                if guest["id"] == guest_id:
                    return pool.pop(index)
        raise KeyError(f"Unknown guest {guest_id}")

    def _changed(self) -> None:
        self.has_unsaved_changes = True

    # -------- mutations --------

    def move_guest(self, guest_id: str, table_id: Optional[str]) -> None:
        """Move a guest onto a table, or back to unassigned when ``table_id`` is None"""
        source = self.table_of(guest_id)
        target = self._table(table_id) if table_id else None
        guest = self._take_guest(guest_id)
        if target is None:
            self.unassigned.append(guest)
        else:
            target["guests"].append(guest)

        self.selected.discard(guest_id)
        self.action_log.append({"guestId": guest_id, "from": source, "to": table_id})
        self._changed()

    def drop_on_guest(self, guest_id: str, target_guest_id: str) -> None:
        """Dropping onto another guest seats the dragged guest at that guest's table"""
        self.move_guest(guest_id, self.table_of(target_guest_id))

    def unassign_guest(self, guest_id: str) -> None:
        self.move_guest(guest_id, None)

    def select(self, guest_id: str) -> None:
        self.selected.add(guest_id)

    def deselect(self, guest_id: str) -> None:
        self.selected.discard(guest_id)

    def toggle_select_all_unassigned(self) -> None:
        unassigned_ids = {g["id"] for g in self.unassigned}
        if unassigned_ids and unassigned_ids <= self.selected:
            self.selected -= unassigned_ids
        else:
            self.selected |= unassigned_ids

    def assign_selected(self, table_id: str) -> int:
        guest_ids = [g["id"] for g in self.unassigned if g["id"] in self.selected]
        for guest_id in guest_ids:
            self.move_guest(guest_id, table_id)
        self.selected.clear()
        return len(guest_ids)

    def clear_all_assignments(self) -> None:
        for table in self.tables:
            self.unassigned.extend(table["guests"])
            table["guests"] = []
        self._changed()

    def add_table(self, name: Optional[str] = None, capacity: int = DEFAULT_CAPACITY) -> Dict[str, Any]:
        table = {
            "id": f"{TEMP_ID_PREFIX}{uuid.uuid4()}",
            "name": name or str(len(self.tables) + 1),
            "capacity": capacity,
            "guests": [],
        }
        self.tables.append(table)
        self._changed()
        return table

    def remove_table(self, table_id: str) -> None:
        """Drop a table; its guests go back to unassigned"""
        table = self._table(table_id)
        self.tables.remove(table)
        self.unassigned.extend(table["guests"])
        self._changed()

    # -------- saving --------

    async def _recreate_tables(self) -> List[Dict[str, Any]]:
        """Have the server rebuild the table set, then point the board at the new ids.

        Recreation unassigns every guest server-side, so the baseline becomes
        "everyone unassigned" on the new tables.
        """
        payload = await self.client.post(
            "/api/tables", {"eventId": self.event_id, "numTables": len(self.tables)}
        )
        created = payload.get("tables", [])
        self.tables = remap_tables(self.tables, [t["id"] for t in created])

        everyone = list(self.original_unassigned)
        for table in self.original_tables:
            everyone.extend(table["guests"])
        self.original_tables = [{**t, "guests": []} for t in created]
        self.original_unassigned = everyone

        table_changes = []
        for working, fresh in zip(self.tables, created):
            updates = {
                field: working[field]
                for field in EDITABLE_TABLE_FIELDS
                if working.get(field) is not None and working.get(field) != fresh.get(field)
            }
            if updates:
                table_changes.append({"tableId": fresh["id"], "updates": updates})
        return table_changes

    async def _send_changes(self, body: Dict[str, Any]) -> SaveResult:
        total = len(body["guestChanges"]) + len(body["tableChanges"])
        for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
            try:
                payload = await self.client.post("/api/assignments/batch", body)
                return SaveResult(saved=payload.get("totalProcessed", total))
            except ApiError as e:
                if PARTIAL_SAVE_MARKER in e.message:
                    logger.warning(f"Assignments partially saved: {e.message}")
                    return SaveResult(saved=e.payload.get("totalProcessed", 0), warning=e.message)
                if _is_rate_limited(e) and attempt < MAX_SAVE_ATTEMPTS:
                    delay = RATE_LIMIT_BACKOFF_SECONDS * attempt
                    logger.info(f"Rate limited saving assignments, retrying in {delay}s")
                    await self._sleep(delay)
                    continue
                raise SaveError(e.message) from e
        raise SaveError("Failed to save assignments")

    async def save(self) -> SaveResult:
        """Persist the net change and reload from the server.

        Raises :class:`SaveError` when the server keeps refusing; the edits
        stay on the board and ``has_unsaved_changes`` stays true.
        """
        if not self.has_unsaved_changes:
            return SaveResult(saved=0)

        table_changes: List[Dict[str, Any]] = []
        try:
            if table_structure_changed(self.original_tables, self.tables):
                table_changes = await self._recreate_tables()
        except ApiError as e:
            raise SaveError(e.message) from e

        guest_changes = compute_guest_changes(
            self.original_tables, self.original_unassigned, self.tables, self.unassigned
        )
        result = SaveResult(saved=0)
        if guest_changes or table_changes:
            result = await self._send_changes({
                "guestChanges": [change.to_payload() for change in guest_changes],
                "tableChanges": table_changes,
            })

        await self.load()
        return result

    def confirm_leave(self, confirm: Callable[[], bool]) -> bool:
        """Whether navigation may proceed; asks only when edits are unsaved"""
        if not self.has_unsaved_changes:
            return True
        return bool(confirm())

"""
Seating arrangement service: table generation, assignment and guest lookup
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from app.services.batch_writer import BatchResult, bulk_update_guest_assignments
from app.services.exceptions import NotFoundError, ValidationError
from app.services.repositories import (
    GuestRepo,
    SettingsRepo,
    TABLES,
    TableRepo,
    guest_display_name,
    guest_full_name,
    matches_guest_search,
)
from app.services.store import DocumentStore
from app.services.table_naming import (
    DEFAULT_CAPACITY,
    DEFAULT_NAMING_TYPE,
    generate_table_name,
    table_color,
)

logger = logging.getLogger(__name__)

MAX_TABLES = 50
MAX_SUGGESTIONS = 10


def _by_name(guest: Dict[str, Any]) -> str:
    return (guest.get("name") or "").lower()


def group_guests_by_table(
    tables: List[Dict[str, Any]], guests: List[Dict[str, Any]]
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Nest guests under their tables; guests without a known table are unassigned"""
    table_ids = {t["id"] for t in tables}
    seated: Dict[str, List[Dict[str, Any]]] = {t["id"]: [] for t in tables}
    unassigned: List[Dict[str, Any]] = []
    for guest in guests:
        table_id = guest.get("tableId")
        if table_id in table_ids:
            seated[table_id].append(guest)
        else:
            unassigned.append(guest)

    tables_with_guests = [
        {**table, "guests": sorted(seated[table["id"]], key=_by_name)} for table in tables
    ]
    return tables_with_guests, sorted(unassigned, key=_by_name)


def round_robin_assignments(
    tables_with_guests: List[Dict[str, Any]], unassigned: List[Dict[str, Any]]
) -> List[Dict[str, str]]:
    """Deal unassigned guests across tables in turn, skipping tables at capacity"""
    seats_left = [
        max((t.get("capacity") or DEFAULT_CAPACITY) - len(t.get("guests", [])), 0)
        for t in tables_with_guests
    ]
    changes: List[Dict[str, str]] = []
    position = 0
    for guest in unassigned:
        if not any(seats_left):
            break
        while seats_left[position % len(tables_with_guests)] == 0:
            position += 1
        index = position % len(tables_with_guests)
        changes.append({"guestId": guest["id"], "tableId": tables_with_guests[index]["id"]})
        seats_left[index] -= 1
        position += 1
    return changes


class SeatingService:
    """Service for seating arrangement operations"""

    @staticmethod
    def get_tables_with_guests(
        store: DocumentStore, user_id: str, event_id: str
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        tables = TableRepo.list(store, user_id, event_id)
        guests = GuestRepo.list(store, user_id, event_id)
        return group_guests_by_table(tables, guests)

    @staticmethod
    def resolve_naming(
        store: DocumentStore, user_id: str, naming_type: Optional[str], prefix: Optional[str]
    ) -> Tuple[str, Optional[str]]:
        """Explicit choice wins, then the user's saved preference"""
        if naming_type:
            return naming_type, prefix
        profile = SettingsRepo.get(store, user_id) or {}
        preference = profile.get("tableNamingPreferences") or {}
        return preference.get("type") or DEFAULT_NAMING_TYPE, prefix or preference.get("customPrefix")

    @staticmethod
    def regenerate_tables(
        store: DocumentStore,
        user_id: str,
        event_id: str,
        num_tables: int,
        naming_type: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Replace every table of the event with ``num_tables`` fresh ones.

        All guests of the event are unassigned first, so nothing keeps a stale
        table reference.
        """
        if num_tables < 0 or num_tables > MAX_TABLES:
            raise ValidationError("Invalid number of tables.")

        for guest in GuestRepo.list(store, user_id, event_id):
            if guest.get("tableId"):
                GuestRepo.update(store, user_id, guest["id"], {"tableId": None})

        existing = TableRepo.list(store, user_id, event_id)
        if existing:
            TableRepo.delete(store, user_id, [t["id"] for t in existing])

        naming_type, prefix = SeatingService.resolve_naming(store, user_id, naming_type, prefix)
        tables = []
        for i in range(num_tables):
            table = TableRepo.create(store, user_id, {
                "name": generate_table_name(i, naming_type, prefix),
                "capacity": DEFAULT_CAPACITY,
                "color": table_color(i),
                "eventId": event_id,
            })
            tables.append({**table, "guests": []})

        logger.info(f"Regenerated {num_tables} tables for event {event_id} using {naming_type} naming")
        return tables

    @staticmethod
    def rename_tables(
        store: DocumentStore, user_id: str, event_id: str, naming_type: str, prefix: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        tables = TableRepo.list(store, user_id, event_id)
        if not tables:
            raise NotFoundError("No tables found for this event")

        batch = store.batch()
        for index, table in enumerate(tables):
            batch.update(TABLES, table["id"], {"name": generate_table_name(index, naming_type, prefix)})
        batch.commit()
        return TableRepo.list(store, user_id, event_id)

    @staticmethod
    def table_for_guest(
        store: DocumentStore, user_id: str, guest: Dict[str, Any], table_id: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        """The caller's table in the guest's event; None when unassigning"""
        if not table_id:
            return None
        table = TableRepo.get(store, user_id, table_id)
        if not table or table.get("eventId") != guest.get("eventId"):
            raise NotFoundError("Table not found or access denied")
        return table

    @staticmethod
    def assign_guest(
        store: DocumentStore, user_id: str, guest_id: str, table_id: Optional[str]
    ) -> Dict[str, Any]:
        """Seat one guest (or unassign when ``table_id`` is empty)"""
        guest = GuestRepo.get(store, user_id, guest_id)
        if not guest:
            raise NotFoundError("Guest not found or access denied")

        table = SeatingService.table_for_guest(store, user_id, guest, table_id)
        GuestRepo.update(store, user_id, guest_id, {"tableId": table_id or None})
        updated = GuestRepo.get(store, user_id, guest_id)
        return {**updated, "table": table}

    @staticmethod
    def validate_guest_changes(
        store: DocumentStore, user_id: str, guest_changes: List[Dict[str, Any]]
    ) -> None:
        """Every guest and target table must belong to the caller and share an event"""
        tables: Dict[str, Optional[Dict[str, Any]]] = {}
        for change in guest_changes:
            guest = GuestRepo.get(store, user_id, change["guestId"])
            if not guest:
                raise NotFoundError(f"Guest {change['guestId']} not found or access denied")
            table_id = change.get("tableId")
            if not table_id:
                continue
            if table_id not in tables:
                tables[table_id] = TableRepo.get(store, user_id, table_id)
            table = tables[table_id]
            if not table or table.get("eventId") != guest.get("eventId"):
                raise NotFoundError(f"Table {table_id} not found or access denied")

    @staticmethod
    async def auto_assign(store: DocumentStore, user_id: str, event_id: str) -> BatchResult:
        tables, unassigned = SeatingService.get_tables_with_guests(store, user_id, event_id)
        if not tables:
            raise ValidationError("No tables found. Please create tables first.")
        if not unassigned:
            raise ValidationError("No unassigned guests found.")

        changes = round_robin_assignments(tables, unassigned)
        if not changes:
            raise ValidationError("All tables are full.")
        return await bulk_update_guest_assignments(store, changes)

    @staticmethod
    def find_guest(
        guests: List[Dict[str, Any]], tables: List[Dict[str, Any]], name: str, include_color: bool = False
    ) -> Optional[Dict[str, Any]]:
        """First guest matching ``name``, shaped for the lookup page"""
        term = name.strip()
        guest = next((g for g in guests if matches_guest_search(g, term)), None)
        if not guest:
            return None

        table = None
        if guest.get("tableId"):
            found = next((t for t in tables if t["id"] == guest["tableId"]), None)
            if found:
                table = {"id": found["id"], "name": found.get("name")}
                if include_color:
                    table["color"] = found.get("color")

        return {
            "id": guest["id"],
            "name": guest_full_name(guest),
            "firstName": guest.get("firstName"),
            "lastName": guest.get("lastName"),
            "phoneNumber": guest.get("phoneNumber"),
            "email": guest.get("email"),
            "table": table,
        }

    @staticmethod
    def suggestions(guests: List[Dict[str, Any]], name: Optional[str]) -> List[str]:
        if not name or len(name) < 2:
            return []
        matches = [g for g in guests if matches_guest_search(g, name)]
        return [guest_display_name(g) for g in matches[:MAX_SUGGESTIONS]]

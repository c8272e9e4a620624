"""
Repository layer over the document store.

Every owner-scoped call takes the caller's user id explicitly; a record that
exists but belongs to someone else is treated exactly like a missing one.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from app.services.exceptions import NotFoundError
from app.services.store import DELETE_FIELD, DocumentStore

logger = logging.getLogger(__name__)

EVENTS = "events"
GUESTS = "guests"
TABLES = "tables"
USER_SETTINGS = "userSettings"

# Firestore rejects batches above 500 writes
MAX_WRITES_PER_BATCH = 500


def _commit_in_chunks(store: DocumentStore, operations: List[tuple]) -> None:
    """Apply (op, collection, id, data) tuples in as few atomic batches as allowed"""
    for start in range(0, len(operations), MAX_WRITES_PER_BATCH):
        batch = store.batch()
        for op, collection, doc_id, data in operations[start:start + MAX_WRITES_PER_BATCH]:
            if op == "update":
                batch.update(collection, doc_id, data)
            else:
                batch.delete(collection, doc_id)
        batch.commit()


def _owned(doc: Optional[Dict[str, Any]], user_id: str) -> Optional[Dict[str, Any]]:
    if doc and doc.get("userId") == user_id:
        return doc
    return None


def _without_nulls(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_public(store: DocumentStore, event_id: str) -> Optional[Dict[str, Any]]:
        return store.get(EVENTS, event_id)

    @staticmethod
    def get(store: DocumentStore, user_id: str, event_id: str) -> Optional[Dict[str, Any]]:
        return _owned(store.get(EVENTS, event_id), user_id)

    @staticmethod
    def list(store: DocumentStore, user_id: str, page_size: int = 20) -> List[Dict[str, Any]]:
        return store.query(EVENTS, {"userId": user_id}, order_by="createdAt", descending=True, limit=page_size)

    @staticmethod
    def create(store: DocumentStore, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        event_id = store.new_id(EVENTS)
        return store.create(EVENTS, event_id, {**_without_nulls(data), "userId": user_id})

    @staticmethod
    def update(store: DocumentStore, user_id: str, event_id: str, updates: Dict[str, Any]) -> None:
        if not EventRepo.get(store, user_id, event_id):
            raise NotFoundError("Event not found or access denied")
        store.update(EVENTS, event_id, updates)

    @staticmethod
    def delete(store: DocumentStore, user_id: str, event_id: str) -> None:
        """Delete the event along with every guest and table that references it"""
        if not EventRepo.get(store, user_id, event_id):
            raise NotFoundError("Event not found or access denied")

        operations = [("delete", EVENTS, event_id, None)]
        for guest in store.query(GUESTS, {"eventId": event_id}):
            operations.append(("delete", GUESTS, guest["id"], None))
        for table in store.query(TABLES, {"eventId": event_id}):
            operations.append(("delete", TABLES, table["id"], None))

        _commit_in_chunks(store, operations)
        logger.info(f"Deleted event {event_id} with {len(operations) - 1} dependent records")

    @staticmethod
    def reset(store: DocumentStore, user_id: str, event_id: str) -> None:
        """Unassign every guest of the event and drop its tables"""
        if not EventRepo.get(store, user_id, event_id):
            raise NotFoundError("Event not found or access denied")

        operations = []
        for guest in store.query(GUESTS, {"eventId": event_id}):
            if guest.get("tableId"):
                operations.append(("update", GUESTS, guest["id"], {"tableId": DELETE_FIELD}))
        for table in store.query(TABLES, {"eventId": event_id}):
            operations.append(("delete", TABLES, table["id"], None))

        _commit_in_chunks(store, operations)


# -------- Guest repository --------

class GuestRepo:
    @staticmethod
    def list_public(store: DocumentStore, event_id: str) -> List[Dict[str, Any]]:
        return store.query(GUESTS, {"eventId": event_id}, order_by="name")

    @staticmethod
    def get(store: DocumentStore, user_id: str, guest_id: str) -> Optional[Dict[str, Any]]:
        return _owned(store.get(GUESTS, guest_id), user_id)

    @staticmethod
    def list(store: DocumentStore, user_id: str, event_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {"userId": user_id}
        if event_id:
            filters["eventId"] = event_id
        return store.query(GUESTS, filters, order_by="createdAt", descending=True)

    @staticmethod
    def create(store: DocumentStore, user_id: str, data: Dict[str, Any]) -> str:
        guest_id = store.new_id(GUESTS)
        store.create(GUESTS, guest_id, {**_without_nulls(data), "userId": user_id})
        return guest_id

    @staticmethod
    def bulk_create(store: DocumentStore, user_id: str, guests: Iterable[Dict[str, Any]]) -> List[str]:
        """Insert all guests in one atomic batch"""
        batch = store.batch()
        ids: List[str] = []
        for data in guests:
            guest_id = store.new_id(GUESTS)
            batch.create(GUESTS, guest_id, {**_without_nulls(data), "userId": user_id})
            ids.append(guest_id)
        batch.commit()
        return ids

    @staticmethod
    def update(store: DocumentStore, user_id: str, guest_id: str, updates: Dict[str, Any]) -> None:
        """Update a guest; a ``tableId`` of None removes the field"""
        if not GuestRepo.get(store, user_id, guest_id):
            raise NotFoundError("Guest not found or access denied")

        data = dict(updates)
        if "tableId" in data and not data["tableId"]:
            data["tableId"] = DELETE_FIELD
        store.update(GUESTS, guest_id, data)

    @staticmethod
    def delete(store: DocumentStore, user_id: str, guest_ids: List[str]) -> int:
        """Delete the caller's guests among ``guest_ids``; returns how many went"""
        operations = []
        for guest_id in guest_ids:
            if GuestRepo.get(store, user_id, guest_id):
                operations.append(("delete", GUESTS, guest_id, None))
        _commit_in_chunks(store, operations)
        return len(operations)

    @staticmethod
    def delete_by_event(store: DocumentStore, user_id: str, event_id: str) -> int:
        guests = store.query(GUESTS, {"userId": user_id, "eventId": event_id})
        _commit_in_chunks(store, [("delete", GUESTS, g["id"], None) for g in guests])
        return len(guests)


# -------- Table repository --------

class TableRepo:
    @staticmethod
    def list_public(store: DocumentStore, event_id: str) -> List[Dict[str, Any]]:
        return store.query(TABLES, {"eventId": event_id}, order_by="createdAt")

    @staticmethod
    def get(store: DocumentStore, user_id: str, table_id: str) -> Optional[Dict[str, Any]]:
        return _owned(store.get(TABLES, table_id), user_id)

    @staticmethod
    def list(store: DocumentStore, user_id: str, event_id: str) -> List[Dict[str, Any]]:
        return store.query(TABLES, {"userId": user_id, "eventId": event_id}, order_by="createdAt")

    @staticmethod
    def create(store: DocumentStore, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        table_id = store.new_id(TABLES)
        return store.create(TABLES, table_id, {**_without_nulls(data), "userId": user_id})

    @staticmethod
    def update(store: DocumentStore, user_id: str, table_id: str, updates: Dict[str, Any]) -> None:
        if not TableRepo.get(store, user_id, table_id):
            raise NotFoundError("Table not found or access denied")
        store.update(TABLES, table_id, updates)

    @staticmethod
    def delete(store: DocumentStore, user_id: str, table_ids: List[str]) -> int:
        """Delete tables and clear ``tableId`` on every guest seated at them"""
        operations = []
        for table_id in table_ids:
            if not TableRepo.get(store, user_id, table_id):
                continue
            operations.append(("delete", TABLES, table_id, None))
            for guest in store.query(GUESTS, {"tableId": table_id}):
                operations.append(("update", GUESTS, guest["id"], {"tableId": DELETE_FIELD}))

        _commit_in_chunks(store, operations)
        return sum(1 for op in operations if op[1] == TABLES)


# -------- User settings repository --------

class SettingsRepo:
    @staticmethod
    def get(store: DocumentStore, user_id: str) -> Optional[Dict[str, Any]]:
        return store.get(USER_SETTINGS, user_id)

    @staticmethod
    def update(store: DocumentStore, user_id: str, updates: Dict[str, Any]) -> None:
        store.set(USER_SETTINGS, user_id, {**updates, "userId": user_id})


# -------- Guest helpers --------

def guest_full_name(guest: Dict[str, Any]) -> str:
    if guest.get("firstName") or guest.get("lastName"):
        return f"{guest.get('firstName') or ''} {guest.get('lastName') or ''}".strip()
    return guest.get("name") or ""


def masked_phone(phone_number: Optional[str]) -> Optional[str]:
    """Show only the last four digits"""
    if not phone_number or len(phone_number) < 4:
        return phone_number
    digits = re.sub(r"\D", "", phone_number)
    if len(digits) < 4:
        return phone_number
    return f"•••• {digits[-4:]}"


def guest_display_name(guest: Dict[str, Any]) -> str:
    full_name = guest_full_name(guest)
    if guest.get("phoneNumber"):
        return f"{full_name} ({masked_phone(guest['phoneNumber'])})"
    return full_name


def matches_guest_search(guest: Dict[str, Any], term: str) -> bool:
    term = term.lower()
    haystacks = [
        guest_full_name(guest),
        guest.get("firstName") or "",
        guest.get("lastName") or "",
        guest.get("email") or "",
        guest.get("phoneNumber") or "",
        guest.get("name") or "",
    ]
    return any(term in value.lower() for value in haystacks)

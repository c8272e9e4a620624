"""
Pure diffing between a baseline seating snapshot and an edited one.

A snapshot is ``(tables, unassigned)`` where each table is a dict with an
``id`` and a ``guests`` list, and ``unassigned`` is a list of guest dicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

TEMP_ID_PREFIX = "temp-"


@dataclass(frozen=True)
class GuestChange:
    guest_id: str
    table_id: Optional[str]

    def to_payload(self) -> Dict[str, Optional[str]]:
        return {"guestId": self.guest_id, "tableId": self.table_id}


def seating_map(tables: Sequence[Dict[str, Any]], unassigned: Sequence[Dict[str, Any]]) -> Dict[str, Optional[str]]:
    """guest id -> table id (None when unassigned)"""
    mapping: Dict[str, Optional[str]] = {g["id"]: None for g in unassigned}
    for table in tables:
        for guest in table.get("guests", []):
            mapping[guest["id"]] = table["id"]
    return mapping


def compute_guest_changes(
    original_tables: Sequence[Dict[str, Any]],
    original_unassigned: Sequence[Dict[str, Any]],
    tables: Sequence[Dict[str, Any]],
    unassigned: Sequence[Dict[str, Any]],
) -> List[GuestChange]:
    """Guests whose table differs between the two snapshots, in working order"""
    before = seating_map(original_tables, original_unassigned)
    after = seating_map(tables, unassigned)
    return [
        GuestChange(guest_id, table_id)
        for guest_id, table_id in after.items()
        if before.get(guest_id) != table_id
    ]


def is_temp_id(table_id: str) -> bool:
    return table_id.startswith(TEMP_ID_PREFIX)


def table_structure_changed(
    original_tables: Sequence[Dict[str, Any]], tables: Sequence[Dict[str, Any]]
) -> bool:
    if len(original_tables) != len(tables):
        return True
    return any(is_temp_id(t["id"]) for t in tables)


def remap_tables(tables: Sequence[Dict[str, Any]], new_ids: Sequence[str]) -> List[Dict[str, Any]]:
    """Give the working tables the freshly issued ids, by position"""
    if len(new_ids) != len(tables):
        raise ValueError(f"Expected {len(tables)} new table ids, got {len(new_ids)}")
    return [{**table, "id": new_id} for table, new_id in zip(tables, new_ids)]

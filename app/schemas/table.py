"""
Table and assignment Pydantic schemas
"""

from typing import Annotated, Any, Dict, List, Optional
from pydantic import AfterValidator, Field, field_validator

from app.schemas.common import CamelModel


def _event_required(value: str) -> str:
    if not value:
        raise ValueError("Event ID is required")
    return value


EventId = Annotated[str, AfterValidator(_event_required)]


class TableGenerate(CamelModel):
    """Replace the event's tables with ``num_tables`` new ones"""
    event_id: EventId
    num_tables: int
    name_type: Optional[str] = None
    custom_prefix: Optional[str] = None

    @field_validator("num_tables", mode="before")
    @classmethod
    def whole_number(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("Invalid number of tables.")
        return value


class TableAssign(CamelModel):
    """Seat one guest; an empty table id unassigns"""
    guest_id: str
    table_id: Optional[str] = None

    @field_validator("guest_id")
    @classmethod
    def guest_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Guest ID is required")
        return value


class TableUpdate(CamelModel):
    name: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    color: Optional[str] = None


class BatchRename(CamelModel):
    event_id: EventId
    name_type: str
    custom_prefix: Optional[str] = None

    @field_validator("name_type")
    @classmethod
    def name_type_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Name type is required")
        return value


class GuestChangeItem(CamelModel):
    guest_id: Any = Field(default=None, validate_default=True)
    table_id: Any = None

    @field_validator("guest_id")
    @classmethod
    def guest_id_is_string(cls, value: Any) -> str:
        if not value or not isinstance(value, str):
            raise ValueError("Invalid guestId in guestChanges")
        return value

    @field_validator("table_id")
    @classmethod
    def table_id_is_string_or_null(cls, value: Any) -> Optional[str]:
        if value is not None and not isinstance(value, str):
            raise ValueError("Invalid tableId in guestChanges")
        return value


EDITABLE_TABLE_FIELDS = ("name", "capacity", "color")


class TableChangeItem(CamelModel):
    table_id: Any = Field(default=None, validate_default=True)
    table_updates: Any = Field(default=None, alias="updates", validate_default=True)

    @field_validator("table_id")
    @classmethod
    def table_id_is_string(cls, value: Any) -> str:
        if not value or not isinstance(value, str):
            raise ValueError("Invalid tableId in tableChanges")
        return value

    @field_validator("table_updates")
    @classmethod
    def updates_are_table_edits(cls, value: Any) -> Dict[str, Any]:
        """Only name, capacity and colour may change; ownership fields never do"""
        if not value or not isinstance(value, dict):
            raise ValueError("Invalid updates in tableChanges")
        if any(key not in EDITABLE_TABLE_FIELDS for key in value):
            raise ValueError("Invalid updates in tableChanges")
        capacity = value.get("capacity")
        if "capacity" in value and (isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1):
            raise ValueError("Invalid updates in tableChanges")
        return value


class BatchAssignment(CamelModel):
    guest_changes: List[GuestChangeItem]
    table_changes: List[TableChangeItem] = []


class AutoAssign(CamelModel):
    event_id: EventId

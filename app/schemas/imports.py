"""
Guest import Pydantic schemas
"""

from typing import List, Optional
from pydantic import field_validator

from app.schemas.common import CamelModel


class ImportedGuest(CamelModel):
    name: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    group_info: Optional[str] = None
    selected: Optional[bool] = None


class DetectedGroup(CamelModel):
    id: str
    name: str
    members: List[str] = []
    suggested_table_size: Optional[int] = None
    group_info: Optional[str] = None
    group_type: Optional[str] = None
    selected: Optional[bool] = None


class ImportSave(CamelModel):
    event_id: str
    guests: List[ImportedGuest]
    groups: List[DetectedGroup] = []
    auto_table_assignment: bool = False

    @field_validator("event_id")
    @classmethod
    def event_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Event ID is required")
        return value

    @field_validator("guests")
    @classmethod
    def guests_required(cls, value: List[ImportedGuest]) -> List[ImportedGuest]:
        if not value:
            raise ValueError("No guests provided for import")
        return value

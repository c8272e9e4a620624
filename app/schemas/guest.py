"""
Guest-related Pydantic schemas
"""

from typing import Optional
from pydantic import EmailStr, field_validator

from app.schemas.common import CamelModel


def _required_name(value: Optional[str]) -> str:
    if not value or not value.strip():
        raise ValueError("Guest name is required")
    return value.strip()


class GuestCreate(CamelModel):
    """Schema for creating a guest"""
    event_id: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[EmailStr] = None
    notes: Optional[str] = None

    @field_validator("event_id")
    @classmethod
    def event_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Event ID is required")
        return value

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        return _required_name(value)


class GuestUpdate(CamelModel):
    """Schema for updating a guest"""
    id: str
    name: str
    phone_number: Optional[str] = None
    table_id: Optional[str] = None

    @field_validator("id")
    @classmethod
    def id_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Guest ID is required")
        return value

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        return _required_name(value)

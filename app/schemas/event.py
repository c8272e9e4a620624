"""
Event-related Pydantic schemas
"""

from typing import Optional
from pydantic import field_validator

from app.schemas.common import CamelModel


class EventCreate(CamelModel):
    """Schema for creating an event"""
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Event name is required")
        return value.strip()

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        return (value or "").strip() or None


class EventUpdate(CamelModel):
    """Schema for updating an event; only sent fields change"""
    name: Optional[str] = None
    description: Optional[str] = None
    theme: Optional[str] = None
    custom_title: Optional[str] = None
    custom_subtitle: Optional[str] = None
    custom_welcome_message: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("Event name is required")
        return value.strip() if value else value

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        return (value or "").strip() or None

"""
User profile Pydantic schemas
"""

from typing import Literal, Optional

from app.schemas.common import CamelModel


class UserPreferences(CamelModel):
    notifications: Optional[bool] = None
    theme: Optional[Literal["light", "dark"]] = None
    language: Optional[str] = None


class TableNamingPreferences(CamelModel):
    type: Literal["numbers", "letters", "roman", "custom-prefix"] = "numbers"
    custom_prefix: Optional[str] = None


class ProfileUpdate(CamelModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    phone_verified: Optional[bool] = None
    settings: Optional[UserPreferences] = None
    table_naming_preferences: Optional[TableNamingPreferences] = None

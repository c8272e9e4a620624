"""
Database models package
"""

from .event import Event
from .table import Table
from .guest import Guest
from .user_settings import UserSettings

# Document collection name -> ORM model
COLLECTIONS = {
    "events": Event,
    "guests": Guest,
    "tables": Table,
    "userSettings": UserSettings,
}

__all__ = ["Event", "Table", "Guest", "UserSettings", "COLLECTIONS"]

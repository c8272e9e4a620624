"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .guest import *
from .imports import *
from .profile import *
from .table import *

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "GuestCreate",
    "GuestUpdate",
    "TableGenerate",
    "TableAssign",
    "TableUpdate",
    "BatchRename",
    "GuestChangeItem",
    "TableChangeItem",
    "BatchAssignment",
    "AutoAssign",
    "ImportedGuest",
    "DetectedGroup",
    "ImportSave",
    "UserPreferences",
    "TableNamingPreferences",
    "ProfileUpdate",
]

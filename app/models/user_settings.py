"""
User profile / settings model
"""

from sqlalchemy import Column, Boolean, String, DateTime, JSON

from app.core.db import Base
from app.models.document import DocumentMixin

class UserSettings(DocumentMixin, Base):
    __tablename__ = "user_settings"

    DOC_FIELDS = {
        "id": "id",
        "userId": "user_id",
        "displayName": "display_name",
        "email": "email",
        "phoneNumber": "phone_number",
        "phoneVerified": "phone_verified",
        "settings": "settings",
        "tableNamingPreferences": "table_naming_preferences",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    # Keyed by the auth uid
    id = Column(String(128), primary_key=True, index=True)
    user_id = Column(String(128), nullable=False)
    display_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    phone_verified = Column(Boolean, nullable=True)
    settings = Column(JSON, nullable=True)
    table_naming_preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

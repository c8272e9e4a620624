"""
Event model
"""

from sqlalchemy import Column, String, Text, DateTime

from app.core.db import Base
from app.models.document import DocumentMixin

class Event(DocumentMixin, Base):
    __tablename__ = "events"

    DOC_FIELDS = {
        "id": "id",
        "name": "name",
        "description": "description",
        "theme": "theme",
        "customTitle": "custom_title",
        "customSubtitle": "custom_subtitle",
        "customWelcomeMessage": "custom_welcome_message",
        "userId": "user_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    theme = Column(String(100), nullable=True)
    custom_title = Column(String(255), nullable=True)
    custom_subtitle = Column(String(255), nullable=True)
    custom_welcome_message = Column(Text, nullable=True)
    user_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

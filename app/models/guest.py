"""
Guest model
"""

from sqlalchemy import Column, String, Text, DateTime

from app.core.db import Base
from app.models.document import DocumentMixin

class Guest(DocumentMixin, Base):
    __tablename__ = "guests"

    DOC_FIELDS = {
        "id": "id",
        "name": "name",
        "firstName": "first_name",
        "lastName": "last_name",
        "phoneNumber": "phone_number",
        "email": "email",
        "notes": "notes",
        "eventId": "event_id",
        "userId": "user_id",
        "tableId": "table_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    event_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    # NULL means unassigned; the document view drops the key
    table_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

"""
Table model
"""

from sqlalchemy import Column, Integer, String, DateTime

from app.core.db import Base
from app.models.document import DocumentMixin

class Table(DocumentMixin, Base):
    __tablename__ = "tables"

    DOC_FIELDS = {
        "id": "id",
        "name": "name",
        "capacity": "capacity",
        "color": "color",
        "eventId": "event_id",
        "userId": "user_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    capacity = Column(Integer, default=8)
    color = Column(String(20), nullable=True)
    event_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

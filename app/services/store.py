"""
Document store abstraction (Firestore vs SQLAlchemy).

Both backends expose the same flat-document API over the ``events``, ``guests``,
``tables`` and ``userSettings`` collections. Documents are plain dicts that
always include their ``id``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from firebase_admin import firestore
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.models import COLLECTIONS
from app.services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class _DeleteField:
    """Marks a field for removal on update"""

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


class DocumentStore:
    """Interface shared by the Firestore and SQL backends"""

    def new_id(self, collection: str) -> str:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        batch = self.batch()
        batch.create(collection, doc_id, data)
        batch.commit()
        return self.get(collection, doc_id)

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        batch = self.batch()
        batch.update(collection, doc_id, data)
        batch.commit()

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create-or-merge a document"""
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        batch = self.batch()
        batch.delete(collection, doc_id)
        batch.commit()

    def batch(self) -> "WriteBatch":
        raise NotImplementedError


class WriteBatch:
    """Collects writes and applies them atomically on commit"""

    def __init__(self) -> None:
        self.operations: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.operations.append(("create", collection, doc_id, data))

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.operations.append(("update", collection, doc_id, data))

    def delete(self, collection: str, doc_id: str) -> None:
        self.operations.append(("delete", collection, doc_id, None))

    def __len__(self) -> int:
        return len(self.operations)

    def commit(self) -> None:
        raise NotImplementedError


# -------- Firestore backend --------

class FirestoreBatch(WriteBatch):
    def __init__(self, client) -> None:
        super().__init__()
        self._client = client

    def commit(self) -> None:
        batch = self._client.batch()
        for op, collection, doc_id, data in self.operations:
            ref = self._client.collection(collection).document(doc_id)
            if op == "create":
                payload = {k: v for k, v in data.items() if v is not DELETE_FIELD}
                payload["id"] = doc_id
                payload["createdAt"] = firestore.SERVER_TIMESTAMP
                payload["updatedAt"] = firestore.SERVER_TIMESTAMP
                batch.set(ref, payload)
            elif op == "update":
                payload = {
                    k: (firestore.DELETE_FIELD if v is DELETE_FIELD else v)
                    for k, v in data.items()
                }
                payload["updatedAt"] = firestore.SERVER_TIMESTAMP
                batch.update(ref, payload)
            else:
                batch.delete(ref)
        batch.commit()


class FirestoreStore(DocumentStore):
    def __init__(self, client) -> None:
        self._client = client

    def new_id(self, collection: str) -> str:
        return self._client.collection(collection).document().id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._client.collection(collection).document(doc_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data["id"] = doc.id
        return data

    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        q = self._client.collection(collection)
        for field, value in (filters or {}).items():
            q = q.where(field, "==", value)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            q = q.order_by(order_by, direction=direction)
        if limit:
            q = q.limit(limit)

        results: List[Dict[str, Any]] = []
        for d in q.stream():
            item = d.to_dict()
            item["id"] = d.id
            results.append(item)
        return results

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        payload = {
            k: (firestore.DELETE_FIELD if v is DELETE_FIELD else v)
            for k, v in data.items()
        }
        payload["updatedAt"] = firestore.SERVER_TIMESTAMP
        self._client.collection(collection).document(doc_id).set(payload, merge=True)

    def batch(self) -> WriteBatch:
        return FirestoreBatch(self._client)


# -------- SQLAlchemy backend --------

class SqlBatch(WriteBatch):
    def __init__(self, session_factory: sessionmaker) -> None:
        super().__init__()
        self._session_factory = session_factory

    def commit(self) -> None:
        session = self._session_factory()
        try:
            for op, collection, doc_id, data in self.operations:
                model = COLLECTIONS[collection]
                now = datetime.utcnow()
                if op == "create":
                    row = model(id=doc_id)
                    row.apply({k: v for k, v in data.items() if v is not DELETE_FIELD and k != "id"})
                    row.created_at = now
                    row.updated_at = now
                    session.add(row)
                    continue

                row = session.get(model, doc_id)
                if row is None:
                    raise NotFoundError(f"No document to {op}: {collection}/{doc_id}")
                if op == "update":
                    row.apply({k: (None if v is DELETE_FIELD else v) for k, v in data.items()})
                    row.updated_at = now
                else:
                    session.delete(row)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class SqlStore(DocumentStore):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._session_factory() as session:
            row = session.get(COLLECTIONS[collection], doc_id)
            return row.to_document() if row else None

    def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        model = COLLECTIONS[collection]
        with self._session_factory() as session:
            q = session.query(model)
            for field, value in (filters or {}).items():
                q = q.filter(model.column_for(field) == value)
            if order_by:
                column = model.column_for(order_by)
                q = q.order_by(column.desc() if descending else column.asc())
            if limit:
                q = q.limit(limit)
            return [row.to_document() for row in q.all()]

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        model = COLLECTIONS[collection]
        session = self._session_factory()
        try:
            now = datetime.utcnow()
            row = session.get(model, doc_id)
            if row is None:
                row = model(id=doc_id)
                row.created_at = now
                session.add(row)
            row.apply({k: (None if v is DELETE_FIELD else v) for k, v in data.items() if k != "id"})
            row.updated_at = now
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def batch(self) -> WriteBatch:
        return SqlBatch(self._session_factory)


@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    """Return the configured document store (cached)"""
    if settings.USE_FIREBASE:
        from app.services.firebase_client import get_firestore_client

        logger.info("Using Firestore document store")
        return FirestoreStore(get_firestore_client())

    from app.core.db import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    logger.info(f"Using SQL document store at {settings.DATABASE_URL}")
    return SqlStore(SessionLocal)

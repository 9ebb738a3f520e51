"""
Document store abstraction for Cloud Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

from google.cloud.firestore_v1 import SERVER_TIMESTAMP, Query

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Interface for the collection reads and writes the gateways need."""

    def add(self, collection: str, data: dict) -> str:
        """Inserts a document and returns the identity the store assigned."""
        ...

    def list_ordered(
        self, collection: str, order_by: str, *, descending: bool = True
    ) -> list[tuple[str, dict]]:
        ...

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...


class FirestoreDocumentStore:
    """Cloud Firestore-backed store; each call is a single remote read or write."""

    def __init__(self, client):
        self.db = client

    def add(self, collection: str, data: dict) -> str:
        _, doc_ref = self.db.collection(collection).add(data)
        logger.debug("Added %s/%s", collection, doc_ref.id)
        return doc_ref.id

    def list_ordered(
        self, collection: str, order_by: str, *, descending: bool = True
    ) -> list[tuple[str, dict]]:
        direction = Query.DESCENDING if descending else Query.ASCENDING
        query = self.db.collection(collection).order_by(order_by, direction=direction)
        return [(snapshot.id, snapshot.to_dict() or {}) for snapshot in query.stream()]

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self.db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()


class InMemoryDocumentStore:
    """
    Simple in-memory document store for development and tests.

    SERVER_TIMESTAMP sentinels are resolved to a UTC datetime at write time,
    strictly increasing across writes so ordering is deterministic. Like
    Firestore, ordered listings skip documents that lack the order field.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._last_timestamp: Optional[datetime] = None

    def _server_timestamp(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last_timestamp and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve(self, data: dict) -> dict:
        resolved: Dict[str, Any] = {}
        timestamp = None
        for key, value in data.items():
            if value is SERVER_TIMESTAMP:
                # All sentinels in one write share a single server time.
                if timestamp is None:
                    timestamp = self._server_timestamp()
                value = timestamp
            resolved[key] = value
        return resolved

    def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.collections.setdefault(collection, {})[doc_id] = self._resolve(data)
        return doc_id

    def put(self, collection: str, doc_id: str, data: dict) -> None:
        """Writes a document under a chosen id (seeding fixtures in tests)."""
        self.collections.setdefault(collection, {})[doc_id] = dict(data)

    def list_ordered(
        self, collection: str, order_by: str, *, descending: bool = True
    ) -> list[tuple[str, dict]]:
        docs = [
            (doc_id, dict(data))
            for doc_id, data in self.collections.get(collection, {}).items()
            if data.get(order_by) is not None
        ]
        docs.sort(key=lambda item: _sort_key(item[1][order_by]), reverse=descending)
        return docs

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        data = self.collections.get(collection, {}).get(doc_id)
        return dict(data) if data is not None else None

    def count(self, collection: str) -> int:
        return len(self.collections.get(collection, {}))

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()
        self._last_timestamp = None


def _sort_key(value: Any) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) / 1000.0
    return 0.0

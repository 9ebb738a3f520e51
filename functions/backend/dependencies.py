"""
Dependency wiring for the FastAPI app.

Backend handles (identity provider, document store, image uploader) are
process-scoped singletons built from settings and injected into the gateways.
Sessions are not: every browser client gets its own session manager and
pushed-event feed, keyed by the client id the routes hand out.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from backend.auth import (
    FirebaseIdentityProvider,
    IdentityProvider,
    InMemoryIdentityProvider,
    SessionManager,
    Subscription,
)
from backend.beverages import BeverageGateway
from backend.bridge import QueueOutbox, UiBridge
from backend.config import get_settings
from backend.db import DocumentStore, FirestoreDocumentStore, InMemoryDocumentStore
from backend.firebase import get_firestore_client
from backend.reviews import ReviewGateway
from backend.storage import ImageUploader, PlaceholderImageUploader

logger = logging.getLogger(__name__)


@dataclass
class ClientContext:
    """Per-client state: the signed-in user and the events pushed to it."""

    sessions: SessionManager
    feed: QueueOutbox
    subscription: Optional[Subscription] = None


_identity_provider: IdentityProvider | None = None
_document_store: DocumentStore | None = None
_image_uploader: ImageUploader | None = None
_clients: Dict[str, ClientContext] = {}
_clients_lock = threading.Lock()


def get_identity_provider() -> IdentityProvider:
    """
    Return the singleton identity provider.

    Raises:
        ValueError: If real backends are configured without FIREBASE_API_KEY.
    """
    global _identity_provider
    if _identity_provider:
        return _identity_provider

    settings = get_settings()
    if settings.use_in_memory_backends:
        _identity_provider = InMemoryIdentityProvider()
    else:
        if not settings.firebase_api_key:
            logger.error(
                "FIREBASE_API_KEY is not set; enable in-memory backends for local runs"
            )
        _identity_provider = FirebaseIdentityProvider(
            api_key=settings.firebase_api_key or "",
            request_uri=settings.sign_in_request_uri,
        )
    return _identity_provider


def get_document_store() -> DocumentStore:
    """
    Return a singleton store so in-memory data persists across requests.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _document_store = InMemoryDocumentStore()
    else:
        _document_store = FirestoreDocumentStore(get_firestore_client(settings))
    return _document_store


def get_image_uploader() -> ImageUploader:
    global _image_uploader
    if _image_uploader:
        return _image_uploader
    _image_uploader = PlaceholderImageUploader()
    return _image_uploader


def get_review_gateway(sessions: SessionManager) -> ReviewGateway:
    return ReviewGateway(
        store=get_document_store(),
        sessions=sessions,
        uploader=get_image_uploader(),
    )


def get_beverage_gateway(sessions: SessionManager) -> BeverageGateway:
    return BeverageGateway(store=get_document_store(), sessions=sessions)


def get_client_context(client_id: str) -> ClientContext:
    """
    Return the context for a client, creating it on first use. A new
    context's feed is subscribed to its own session changes for as long as
    the context lives.
    """
    with _clients_lock:
        context = _clients.get(client_id)
        if context:
            return context

        sessions = SessionManager(get_identity_provider())
        context = ClientContext(sessions=sessions, feed=QueueOutbox())
        bridge = UiBridge(
            sessions=sessions,
            reviews=get_review_gateway(sessions),
            beverages=get_beverage_gateway(sessions),
            outbox=context.feed,
        )
        context.subscription = bridge.connect()
        _clients[client_id] = context
        return context


def reset_dependencies() -> None:
    """Drop all singletons and client contexts (useful in tests)."""
    global _identity_provider, _document_store, _image_uploader
    with _clients_lock:
        for context in _clients.values():
            if context.subscription:
                context.subscription.unsubscribe()
        _clients.clear()
    _identity_provider = None
    _document_store = None
    _image_uploader = None

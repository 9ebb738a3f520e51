"""
One-time Firebase Admin SDK initialisation from settings.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials, firestore

from backend.config import Settings

logger = logging.getLogger(__name__)


def init_firebase(settings: Settings) -> firebase_admin.App:
    """Return the default app, initialising it on first call."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket
    if settings.firebase_database_url:
        options["databaseURL"] = settings.firebase_database_url

    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
    else:
        cred = credentials.ApplicationDefault()

    logger.info(
        "Initialising Firebase app for project %s", settings.firebase_project_id
    )
    return firebase_admin.initialize_app(cred, options or None)


def get_firestore_client(settings: Settings):
    app = init_firebase(settings)
    return firestore.client(app)

"""
Review persistence on the `reviews` Firestore collection.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from backend.auth import SessionManager
from backend.db import DocumentStore
from backend.errors import NotAuthenticatedError
from backend.normalize import now_millis, review_from_document
from backend.storage import ImageUploader
from shared.firebase_constants import CREATED_AT_FIELD, REVIEWS_COLLECTION
from shared.json_utils import convert_keys
from shared.types import ANONYMOUS_USER_NAME, LikeResult, Review, ReviewInput

logger = logging.getLogger(__name__)


class ReviewGateway:
    def __init__(
        self,
        store: DocumentStore,
        sessions: SessionManager,
        uploader: ImageUploader,
    ):
        self.store = store
        self.sessions = sessions
        self.uploader = uploader

    def create_review(self, review_input: ReviewInput) -> Review:
        """
        Writes a review for the signed-in user.

        The stored `createdAt` is the server timestamp; the returned record
        carries the client time instead, since the server value is only known
        after a re-read.

        Raises:
            NotAuthenticatedError: If no session is active. Nothing is written.
        """
        session = self.sessions.current_session()
        if session is None:
            raise NotAuthenticatedError()

        image_url = None
        if review_input.image_file:
            image_url = self.uploader.upload_review_image(
                review_input.title, review_input.image_file
            )

        record = {
            "user_id": session.uid,
            "user_name": session.display_name or ANONYMOUS_USER_NAME,
            "beverage_id": review_input.beverage_id,
            "beverage_name": review_input.beverage_name,
            "rating": review_input.rating,
            "title": review_input.title,
            "content": review_input.content,
            "image_url": image_url,
            "likes": 0,
            "created_at": SERVER_TIMESTAMP,
        }
        doc_id = self.store.add(REVIEWS_COLLECTION, convert_keys(record, "snake_to_camel"))
        logger.info("Saved review %s for beverage %s", doc_id, review_input.beverage_id)

        record["created_at"] = now_millis()
        return Review(id=doc_id, **record)

    def list_reviews(self) -> list[Review]:
        """All reviews, newest first."""
        documents = self.store.list_ordered(
            REVIEWS_COLLECTION, CREATED_AT_FIELD, descending=True
        )
        reviews = [review_from_document(doc_id, data) for doc_id, data in documents]
        # Re-sort on the normalised value; fallback timestamps may reorder.
        reviews.sort(key=lambda review: review.created_at, reverse=True)
        return reviews

    def like_review(self, review_id: str) -> LikeResult:
        """Not implemented: reports success and leaves `likes` untouched."""
        logger.info("like_review(%s) is a no-op", review_id)
        return LikeResult(success=True)


def review_payload(review: Review) -> dict:
    return convert_keys(asdict(review), "snake_to_camel")

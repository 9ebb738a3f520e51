"""
Image storage for review photos.

Only a placeholder implementation exists: uploads to the storage bucket were
never built, so reviews with an image get a deterministic placeholder URL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)

PLACEHOLDER_BASE_URL = "https://via.placeholder.com/300/300"


class ImageUploader(Protocol):
    """Defines the operation the review gateway needs from object storage."""

    def upload_review_image(self, title: str, image: Any) -> str:
        ...


@dataclass
class PlaceholderImageUploader:
    """Stores nothing; returns a placeholder URL derived from the title."""

    base_url: str = PLACEHOLDER_BASE_URL

    def upload_review_image(self, title: str, image: Any) -> str:
        logger.info("Image upload is not implemented; using placeholder for %r", title)
        encoded = quote(title, safe="!*'()")
        return f"{self.base_url}?text={encoded}"

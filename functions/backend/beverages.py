"""
Beverage persistence on the `beverages` Firestore collection.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from backend.auth import SessionManager
from backend.db import DocumentStore
from backend.errors import NotAuthenticatedError, ValidationError
from backend.normalize import beverage_from_document, now_millis
from shared.firebase_constants import BEVERAGES_COLLECTION, CREATED_AT_FIELD
from shared.json_utils import convert_keys
from shared.types import Beverage, BeverageInput

logger = logging.getLogger(__name__)


def _parse_percentage(value) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid alcohol percentage: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid alcohol percentage: {value!r}") from e
    if not math.isfinite(number):
        raise ValidationError(f"Invalid alcohol percentage: {value!r}")
    return number


def _is_present(value) -> bool:
    return value is not None and value != ""


class BeverageGateway:
    def __init__(self, store: DocumentStore, sessions: SessionManager):
        self.store = store
        self.sessions = sessions

    def create_beverage(self, beverage_input: BeverageInput) -> Beverage:
        """
        Writes a beverage created by the signed-in user. Optional fields are
        only stored when the input has them.

        Raises:
            NotAuthenticatedError: If no session is active.
            ValidationError: If alcohol_percentage is not a number.
        """
        session = self.sessions.current_session()
        if session is None:
            raise NotAuthenticatedError()

        record = {
            "name": beverage_input.name,
            "category": beverage_input.category,
            "user_id": session.uid,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        }
        if _is_present(beverage_input.alcohol_percentage):
            record["alcohol_percentage"] = _parse_percentage(
                beverage_input.alcohol_percentage
            )
        if _is_present(beverage_input.manufacturer):
            record["manufacturer"] = beverage_input.manufacturer
        if _is_present(beverage_input.description):
            record["description"] = beverage_input.description

        doc_id = self.store.add(
            BEVERAGES_COLLECTION, convert_keys(record, "snake_to_camel")
        )
        logger.info("Saved beverage %s (%s)", doc_id, beverage_input.name)

        timestamp = now_millis()
        record["created_at"] = timestamp
        record["updated_at"] = timestamp
        return Beverage(id=doc_id, **record)

    def list_beverages(self) -> list[Beverage]:
        documents = self.store.list_ordered(
            BEVERAGES_COLLECTION, CREATED_AT_FIELD, descending=True
        )
        beverages = [beverage_from_document(doc_id, data) for doc_id, data in documents]
        beverages.sort(key=lambda beverage: beverage.created_at, reverse=True)
        return beverages


def beverage_payload(beverage: Beverage) -> dict:
    return convert_keys(asdict(beverage), "snake_to_camel")

"""
Boundary between UI intents and the gateways.

Each intent makes exactly one gateway call and sends its result to the
outbox as tagged outbound events. Failures never escape: they become a
`receiveError` event, and fetch intents also send an empty list so the UI is
never left waiting.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Optional, Protocol

from dacite import Config, DaciteError, from_dict

from backend.auth import IdpCredential, SessionManager, Subscription
from backend.beverages import BeverageGateway, beverage_payload
from backend.errors import ValidationError, to_error_payload
from backend.reviews import ReviewGateway, review_payload
from shared.events import OutboundEvent, OutboundPort
from shared.json_utils import convert_keys
from shared.types import BeverageInput, ReviewInput, Session

logger = logging.getLogger(__name__)

SIGN_IN_REQUIRED_MESSAGE = "Please sign in to post."
LOGIN_FAILED_MESSAGE = "Sign-in failed."
LOGOUT_FAILED_MESSAGE = "Sign-out failed."
SAVE_REVIEW_FAILED_MESSAGE = "An error occurred while saving the review."
FETCH_REVIEWS_FAILED_MESSAGE = "An error occurred while loading reviews."
SAVE_BEVERAGE_FAILED_MESSAGE = "An error occurred while saving the beverage."
FETCH_BEVERAGES_FAILED_MESSAGE = "An error occurred while loading beverages."
LIKE_FAILED_MESSAGE = "An error occurred while liking the review."


class Outbox(Protocol):
    """Where outbound events are delivered."""

    def send(self, event: OutboundEvent) -> None:
        ...


class QueueOutbox:
    """Thread-safe FIFO of outbound events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: deque[OutboundEvent] = deque()

    def send(self, event: OutboundEvent) -> None:
        with self._lock:
            self._events.append(event)

    def drain(self) -> list[OutboundEvent]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events


def session_payload(session: Optional[Session]) -> Optional[dict]:
    return session.as_payload() if session else None


def _parse(data_class, payload: Any):
    if not isinstance(payload, dict):
        raise ValidationError("Request payload must be an object.")
    try:
        return from_dict(
            data_class=data_class,
            data=convert_keys(payload, "camel_to_snake"),
            config=Config(check_types=False),
        )
    except DaciteError as e:
        raise ValidationError(str(e)) from e


class UiBridge:
    """Stateless router from UI intents to gateway calls."""

    def __init__(
        self,
        sessions: SessionManager,
        reviews: ReviewGateway,
        beverages: BeverageGateway,
        outbox: Outbox,
    ):
        self.sessions = sessions
        self.reviews = reviews
        self.beverages = beverages
        self.outbox = outbox

    def _send(self, port: OutboundPort, payload: Any = None) -> None:
        self.outbox.send(OutboundEvent(port=port, payload=payload))

    def _send_error(self, exc: BaseException, default_message: str) -> None:
        error = to_error_payload(exc, default_message)
        logger.error("%s (%s): %s", default_message, error["code"], error["message"])
        self._send(OutboundPort.RECEIVE_ERROR, error)

    def connect(self) -> Subscription:
        """Forwards every session change to `receiveUser` until unsubscribed."""
        return self.sessions.subscribe_session_changes(
            lambda session: self._send(
                OutboundPort.RECEIVE_USER, session_payload(session)
            )
        )

    def request_login(self, credential: IdpCredential) -> None:
        try:
            session = self.sessions.begin_sign_in(credential)
        except Exception as e:
            self._send_error(e, LOGIN_FAILED_MESSAGE)
            return
        self._send(OutboundPort.RECEIVE_USER, session_payload(session))

    def request_logout(self) -> None:
        try:
            self.sessions.end_session()
        except Exception as e:
            self._send_error(e, LOGOUT_FAILED_MESSAGE)
            return
        self._send(OutboundPort.RECEIVE_USER, None)

    def save_review(self, payload: Any) -> None:
        if self.sessions.current_session() is None:
            self._send(
                OutboundPort.RECEIVE_ERROR,
                {"code": "auth-error", "message": SIGN_IN_REQUIRED_MESSAGE},
            )
            return
        try:
            review = self.reviews.create_review(_parse(ReviewInput, payload))
        except Exception as e:
            self._send_error(e, SAVE_REVIEW_FAILED_MESSAGE)
            self._send(OutboundPort.REVIEW_SAVED, {"success": False})
            return
        self._send(
            OutboundPort.REVIEW_SAVED,
            {"success": True, "review": review_payload(review)},
        )

    def request_reviews(self) -> None:
        try:
            reviews = self.reviews.list_reviews()
        except Exception as e:
            self._send_error(e, FETCH_REVIEWS_FAILED_MESSAGE)
            self._send(OutboundPort.RECEIVE_REVIEWS, [])
            return
        self._send(OutboundPort.RECEIVE_REVIEWS, [review_payload(r) for r in reviews])

    def save_beverage(self, payload: Any) -> None:
        if self.sessions.current_session() is None:
            self._send(
                OutboundPort.RECEIVE_ERROR,
                {"code": "auth-error", "message": SIGN_IN_REQUIRED_MESSAGE},
            )
            return
        try:
            beverage = self.beverages.create_beverage(_parse(BeverageInput, payload))
        except Exception as e:
            self._send_error(e, SAVE_BEVERAGE_FAILED_MESSAGE)
            self._send(OutboundPort.BEVERAGE_SAVED, {"success": False})
            return
        self._send(
            OutboundPort.BEVERAGE_SAVED,
            {"success": True, "beverage": beverage_payload(beverage)},
        )

    def request_beverages(self) -> None:
        try:
            beverages = self.beverages.list_beverages()
        except Exception as e:
            self._send_error(e, FETCH_BEVERAGES_FAILED_MESSAGE)
            self._send(OutboundPort.RECEIVE_BEVERAGES, [])
            return
        self._send(
            OutboundPort.RECEIVE_BEVERAGES, [beverage_payload(b) for b in beverages]
        )

    def like_review(self, review_id: str) -> None:
        try:
            result = self.reviews.like_review(review_id)
        except Exception as e:
            self._send_error(e, LIKE_FAILED_MESSAGE)
            return
        self._send(
            OutboundPort.REVIEW_LIKED,
            {"success": result.success, "reviewId": review_id},
        )

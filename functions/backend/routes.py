"""
HTTP routes exposing the UI intents.

Every intent route answers with the outbound events that intent produced.
Each browser is identified by a client cookie and has its own session;
its session changes are pushed to a per-client feed that the UI polls
through `/events`.
"""

from __future__ import annotations

import logging
from typing import Callable
from uuid import uuid4

from fastapi import APIRouter, Depends, Request, Response

from backend.auth import IdpCredential
from backend.bridge import QueueOutbox, UiBridge, session_payload
from backend.config import get_settings
from backend.dependencies import (
    ClientContext,
    get_beverage_gateway,
    get_client_context,
    get_review_gateway,
)
from backend.schemas import (
    ClientConfigResponse,
    IntentResponse,
    LikeReviewRequest,
    LoginRequest,
    SaveBeverageRequest,
    SaveReviewRequest,
    SessionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


CLIENT_COOKIE = "bridge_client"


def get_client(request: Request, response: Response) -> ClientContext:
    """Resolves the calling browser from its cookie, issuing one if missing."""
    client_id = request.cookies.get(CLIENT_COOKIE)
    if not client_id:
        client_id = uuid4().hex
        response.set_cookie(CLIENT_COOKIE, client_id, httponly=True, samesite="lax")
    return get_client_context(client_id)


def get_bridge(client: ClientContext = Depends(get_client)) -> UiBridge:
    # One outbox per request; pushed session changes go to `client.feed`.
    return UiBridge(
        sessions=client.sessions,
        reviews=get_review_gateway(client.sessions),
        beverages=get_beverage_gateway(client.sessions),
        outbox=QueueOutbox(),
    )


def _run(bridge: UiBridge, intent: Callable[[], None]) -> IntentResponse:
    intent()
    events = bridge.outbox.drain()
    return IntentResponse(events=[event.as_dict() for event in events])


@router.post("/intents/request_login", response_model=IntentResponse)
def request_login(payload: LoginRequest, bridge: UiBridge = Depends(get_bridge)):
    credential = IdpCredential(
        id_token=payload.id_token, access_token=payload.access_token
    )
    return _run(bridge, lambda: bridge.request_login(credential))


@router.post("/intents/request_logout", response_model=IntentResponse)
def request_logout(bridge: UiBridge = Depends(get_bridge)):
    return _run(bridge, bridge.request_logout)


@router.post("/intents/save_review", response_model=IntentResponse)
def save_review(payload: SaveReviewRequest, bridge: UiBridge = Depends(get_bridge)):
    data = payload.model_dump(by_alias=True)
    return _run(bridge, lambda: bridge.save_review(data))


@router.post("/intents/request_reviews", response_model=IntentResponse)
def request_reviews(bridge: UiBridge = Depends(get_bridge)):
    return _run(bridge, bridge.request_reviews)


@router.post("/intents/save_beverage", response_model=IntentResponse)
def save_beverage(
    payload: SaveBeverageRequest, bridge: UiBridge = Depends(get_bridge)
):
    data = payload.model_dump(by_alias=True)
    return _run(bridge, lambda: bridge.save_beverage(data))


@router.post("/intents/request_beverages", response_model=IntentResponse)
def request_beverages(bridge: UiBridge = Depends(get_bridge)):
    return _run(bridge, bridge.request_beverages)


@router.post("/intents/like_review", response_model=IntentResponse)
def like_review(payload: LikeReviewRequest, bridge: UiBridge = Depends(get_bridge)):
    return _run(bridge, lambda: bridge.like_review(payload.review_id))


@router.get("/session", response_model=SessionResponse)
def current_session(client: ClientContext = Depends(get_client)):
    return SessionResponse(user=session_payload(client.sessions.current_session()))


@router.get("/events", response_model=IntentResponse)
def pushed_events(client: ClientContext = Depends(get_client)):
    """Drains session-change events pushed since the last call."""
    return IntentResponse(events=[event.as_dict() for event in client.feed.drain()])


@router.get("/config", response_model=ClientConfigResponse)
def client_config(client: ClientContext = Depends(get_client)):
    settings = get_settings()
    return ClientConfigResponse(
        firebase=settings.web_config(), sign_in=client.sessions.sign_in_options()
    )

"""
Session management on top of Firebase Authentication.

A service cannot open the Google sign-in popup itself, so the UI hands over
the Google OAuth credential it obtained and the session manager exchanges it
with the Identity Toolkit REST API, the same call the JS SDK makes behind
`signInWithPopup`.
"""

from __future__ import annotations

import itertools
import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Protocol

import requests

from backend.errors import AuthError
from shared.types import Session

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
GOOGLE_PROVIDER_ID = "google.com"

# Always let the user pick an account instead of reusing the last one.
GOOGLE_CUSTOM_PARAMETERS = {"prompt": "select_account"}

SessionHandler = Callable[[Optional[Session]], None]


@dataclass
class IdpCredential:
    """OAuth credential returned to the UI by the Google sign-in flow."""

    id_token: Optional[str] = None
    access_token: Optional[str] = None
    provider_id: str = GOOGLE_PROVIDER_ID


@dataclass
class SignInResult:
    session: Session
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None


class IdentityProvider(Protocol):
    """The identity operations the session manager needs."""

    def sign_in_with_idp(self, credential: IdpCredential) -> SignInResult:
        ...

    def refresh(self, refresh_token: str) -> SignInResult:
        ...

    def sign_out(self, session: Optional[Session]) -> None:
        ...


def _provider_error_code(message: str) -> str:
    # "INVALID_IDP_RESPONSE : detail" -> "auth/invalid-idp-response"
    reason = message.split(":", 1)[0].strip() or "internal-error"
    return "auth/" + re.sub(r"[_\s]+", "-", reason).lower()


class FirebaseIdentityProvider:
    """Identity Toolkit REST client authenticated with the web API key."""

    def __init__(self, api_key: str, request_uri: str = "http://localhost"):
        if not api_key:
            raise ValueError("FIREBASE_API_KEY is required for sign-in")
        self.api_key = api_key
        self.request_uri = request_uri
        self.http = requests.Session()

    def _post(self, url: str, **kwargs) -> dict:
        try:
            response = self.http.post(
                url, params={"key": self.api_key}, timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.RequestException as e:
            raise AuthError(str(e), code="auth/network-request-failed") from e

        if response.status_code >= 400:
            try:
                message = response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                message = response.text or f"HTTP {response.status_code}"
            raise AuthError(message, code=_provider_error_code(message))
        return response.json()

    def sign_in_with_idp(self, credential: IdpCredential) -> SignInResult:
        if credential.id_token:
            post_body = f"id_token={credential.id_token}"
        elif credential.access_token:
            post_body = f"access_token={credential.access_token}"
        else:
            raise AuthError(
                "An id token or access token is required.",
                code="auth/invalid-credential",
            )
        post_body += f"&providerId={credential.provider_id}"

        data = self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithIdp",
            json={
                "postBody": post_body,
                "requestUri": self.request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return SignInResult(
            session=Session(
                uid=data["localId"],
                display_name=data.get("displayName"),
                email=data.get("email"),
                photo_url=data.get("photoUrl"),
            ),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    def _lookup(self, id_token: str) -> Session:
        data = self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:lookup", json={"idToken": id_token}
        )
        users = data.get("users") or []
        if not users:
            raise AuthError("No user for token.", code="auth/user-not-found")
        user = users[0]
        return Session(
            uid=user["localId"],
            display_name=user.get("displayName"),
            email=user.get("email"),
            photo_url=user.get("photoUrl"),
        )

    def refresh(self, refresh_token: str) -> SignInResult:
        data = self._post(
            SECURE_TOKEN_URL,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        id_token = data["id_token"]
        return SignInResult(
            session=self._lookup(id_token),
            id_token=id_token,
            refresh_token=data.get("refresh_token", refresh_token),
        )

    def sign_out(self, session: Optional[Session]) -> None:
        # Firebase sign-out is local: dropping the tokens ends the session.
        return None


@dataclass
class InMemoryIdentityProvider:
    """Test double mapping OAuth id tokens to known accounts."""

    accounts: Dict[str, Session] = field(default_factory=dict)
    sign_out_error: Optional[Exception] = None
    sign_in_calls: int = 0

    def sign_in_with_idp(self, credential: IdpCredential) -> SignInResult:
        self.sign_in_calls += 1
        token = credential.id_token or credential.access_token
        session = self.accounts.get(token or "")
        if session is None:
            raise AuthError(
                "INVALID_IDP_RESPONSE : unknown credential",
                code="auth/invalid-idp-response",
            )
        return SignInResult(
            session=session, id_token=f"id:{token}", refresh_token=f"refresh:{token}"
        )

    def refresh(self, refresh_token: str) -> SignInResult:
        token = refresh_token.removeprefix("refresh:")
        session = self.accounts.get(token)
        if session is None:
            raise AuthError("TOKEN_EXPIRED", code="auth/token-expired")
        return SignInResult(
            session=session, id_token=f"id:{token}", refresh_token=refresh_token
        )

    def sign_out(self, session: Optional[Session]) -> None:
        if self.sign_out_error:
            raise self.sign_out_error


class Subscription:
    """Handle returned by SessionChannel.subscribe."""

    def __init__(self, channel: "SessionChannel", key: int):
        self._channel = channel
        self._key = key

    def unsubscribe(self) -> None:
        """Stops delivery to the handler. Safe to call more than once."""
        self._channel._remove(self._key)


class SessionChannel:
    """
    Observable session state.

    A new subscriber is called once immediately with the current state, then
    once for every published change, so each transition reaches every
    subscriber at least once. Publishing the same identity twice is not a
    change and is not delivered.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[int, SessionHandler] = {}
        self._keys = itertools.count()
        self._current: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._current

    def subscribe(self, handler: SessionHandler) -> Subscription:
        with self._lock:
            key = next(self._keys)
            self._handlers[key] = handler
            current = self._current
        self._deliver(handler, current)
        return Subscription(self, key)

    def _remove(self, key: int) -> None:
        with self._lock:
            self._handlers.pop(key, None)

    def publish(self, session: Optional[Session], *, force: bool = False) -> None:
        with self._lock:
            changed = force or session != self._current
            self._current = session
            handlers = list(self._handlers.values())
        if not changed:
            return
        for handler in handlers:
            self._deliver(handler, session)

    def _deliver(self, handler: SessionHandler, session: Optional[Session]) -> None:
        try:
            handler(session)
        except Exception:
            # A failing subscriber must not stop delivery to the others.
            logger.exception("Session change handler failed")


class SessionManager:
    """Sign-in, sign-out and session observation for the current user."""

    def __init__(self, provider: IdentityProvider, channel: SessionChannel | None = None):
        self.provider = provider
        self.channel = channel or SessionChannel()
        self._lock = threading.Lock()
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None

    def sign_in_options(self) -> dict:
        return {
            "providerId": GOOGLE_PROVIDER_ID,
            "customParameters": dict(GOOGLE_CUSTOM_PARAMETERS),
        }

    def begin_sign_in(self, credential: IdpCredential) -> Session:
        """Exchanges a federated credential for a session. Raises AuthError."""
        result = self.provider.sign_in_with_idp(credential)
        with self._lock:
            self._id_token = result.id_token
            self._refresh_token = result.refresh_token
        logger.info("Signed in user %s", result.session.uid)
        self.channel.publish(result.session)
        return result.session

    def end_session(self) -> None:
        """Signs out. Without a session this still succeeds and publishes None."""
        session = self.channel.current
        self.provider.sign_out(session)
        with self._lock:
            self._id_token = None
            self._refresh_token = None
        if session:
            logger.info("Signed out user %s", session.uid)
        self.channel.publish(None, force=True)

    def current_session(self) -> Optional[Session]:
        return self.channel.current

    def id_token(self) -> Optional[str]:
        return self._id_token

    def refresh_session(self) -> Optional[Session]:
        """
        Refreshes the tokens. Subscribers only hear about it when the
        refreshed identity differs from the cached one.
        """
        with self._lock:
            refresh_token = self._refresh_token
        if not refresh_token:
            return None
        result = self.provider.refresh(refresh_token)
        with self._lock:
            self._id_token = result.id_token
            self._refresh_token = result.refresh_token
        self.channel.publish(result.session)
        return result.session

    def subscribe_session_changes(self, handler: SessionHandler) -> Subscription:
        return self.channel.subscribe(handler)

"""
Error taxonomy for the gateways and its mapping to UI error payloads.
"""

from __future__ import annotations

import re

from google.api_core import exceptions as google_exceptions

UNKNOWN_ERROR_CODE = "unknown-error"


class GatewayError(Exception):
    """An error with a machine-readable code the UI can switch on."""

    code = UNKNOWN_ERROR_CODE

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class NotAuthenticatedError(GatewayError):
    """Raised when an operation needs a session and none is active."""

    code = "auth-error"

    def __init__(self, message: str = "User is not signed in."):
        super().__init__(message)


class AuthError(GatewayError):
    """Sign-in or sign-out failure reported by the identity provider."""

    code = "auth/internal-error"


class ValidationError(GatewayError):
    code = "invalid-argument"


def _kebab(name: str) -> str:
    return re.sub(r"[_\s]+", "-", name.strip()).lower()


def to_error_payload(exc: BaseException, default_message: str) -> dict:
    """
    Converts any exception to the `{code, message}` shape the UI receives.

    Google API errors are reported by their gRPC status name
    (PERMISSION_DENIED -> permission-denied). Everything else falls back to
    `unknown-error` and `default_message` when it carries no message.
    """
    if isinstance(exc, GatewayError):
        return {"code": exc.code, "message": exc.message or default_message}

    if isinstance(exc, google_exceptions.GoogleAPICallError):
        code = UNKNOWN_ERROR_CODE
        if exc.grpc_status_code is not None:
            code = _kebab(exc.grpc_status_code.name)
        return {"code": code, "message": exc.message or default_message}

    code = getattr(exc, "code", None)
    message = str(exc) or default_message
    return {
        "code": code if isinstance(code, str) and code else UNKNOWN_ERROR_CODE,
        "message": message,
    }

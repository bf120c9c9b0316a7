"""
Exceptions raised by the Netmagis client.

Every failure is reported to the immediate caller; nothing is retried.
"""

from enum import Enum
from typing import Optional


class NetmagisError(Exception):
    """Base class for all Netmagis client errors."""


class ConfigError(NetmagisError):
    """Configuration file is missing, unreadable or incomplete."""


class TransportError(NetmagisError):
    """The HTTP request itself failed (connection, timeout, ...)."""


class ValidationError(NetmagisError):
    """Caller input rejected before any network call."""


class ParseError(NetmagisError):
    """Response body could not be parsed as markup."""


class AuthStage(Enum):
    """Step of the CAS login ceremony that failed."""

    NO_REDIRECT = "no_redirect"
    LOGIN_PAGE_UNREACHABLE = "login_page_unreachable"
    TOKEN_NOT_FOUND = "token_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    CALLBACK_FAILED = "callback_failed"


class AuthError(NetmagisError):
    """CAS authentication failed; fatal to client construction."""

    def __init__(self, stage: AuthStage, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"CAS {stage.value}: {message}")


class OperationFailure(Enum):
    SERVER_REJECTED = "server_rejected"
    UNEXPECTED_RESPONSE = "unexpected_response"


class OperationError(NetmagisError):
    """
    A form submission did not succeed.

    SERVER_REJECTED carries the message extracted from the error banner.
    UNEXPECTED_RESPONSE keeps the raw HTML in ``body`` so markup drift on the
    server side can be diagnosed.
    """

    def __init__(
        self, kind: OperationFailure, message: str, body: Optional[str] = None
    ):
        self.kind = kind
        self.message = message
        self.body = body
        if kind is OperationFailure.UNEXPECTED_RESPONSE:
            text = f"unexpected output (raw HTML answer for debug): {body}"
        else:
            text = f"server rejected request: {message}"
        super().__init__(text)

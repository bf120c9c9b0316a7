"""
HTTP transports and CAS authentication.

This package contains the transport interface, its ``requests``
implementation, an in-memory mock and the CAS login ceremony.
"""

from .base_provider import HttpResponse, Transport
from .cas import CASAuthenticator
from .http_client import RequestsTransport
from .mock_provider import MockTransport

__all__ = ["HttpResponse", "Transport", "CASAuthenticator", "RequestsTransport", "MockTransport"]

"""
Netmagis Client - host management for Netmagis without an API

Drives the Netmagis web forms behind a CAS login to search, declare,
modify and remove hosts and aliases.
"""

__version__ = "1.0.0"
__author__ = "Netmagis Client Team"
__description__ = "Programmatic client for the Netmagis web interface"

from .core.client import NetmagisClient
from .core.exceptions import (
    AuthError,
    NetmagisError,
    OperationError,
    ParseError,
    ValidationError,
)
from .core.models import EditableHost, HostOptions, HostRecord

__all__ = [
    "NetmagisClient",
    "HostRecord",
    "HostOptions",
    "EditableHost",
    "NetmagisError",
    "AuthError",
    "OperationError",
    "ParseError",
    "ValidationError",
]

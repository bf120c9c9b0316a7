"""
Core Netmagis client functionality.

This package contains the host model, the form submission protocol and the
client exposing host operations.
"""

from .client import NetmagisClient
from .importer import HostImporter

__all__ = ["NetmagisClient", "HostImporter"]

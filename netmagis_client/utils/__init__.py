"""
Utility functions and helpers.

This package contains utility functions for validation and
configuration loading.
"""

from .validators import split_fqdn, validate_fqdn, validate_ip

__all__ = ["split_fqdn", "validate_fqdn", "validate_ip"]

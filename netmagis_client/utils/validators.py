"""
Validators - Input validation for host names and addresses

This module provides validation functions for FQDN and IP addresses
so that bad identifiers are rejected before reaching Netmagis.
"""

import ipaddress
import logging
import re
from typing import Tuple

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_LABEL_REGEXP = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")


def validate_fqdn(fqdn: str) -> bool:
    """
    Validate Fully Qualified Domain Name (FQDN).

    Args:
        fqdn: The FQDN to validate

    Returns:
        True if valid, False otherwise
    """
    if not fqdn or not isinstance(fqdn, str):
        return False

    if fqdn.endswith("."):
        logger.debug(f"FQDN ends with dot: {fqdn}")
        return False

    if len(fqdn) > 253:
        logger.debug(f"FQDN too long: {fqdn}")
        return False

    labels = fqdn.split(".")

    # A bare label has no domain to be added to
    if len(labels) < 2:
        logger.debug(f"FQDN must have at least 2 labels: {fqdn}")
        return False

    for label in labels:
        if not _validate_label(label):
            logger.debug(f"Invalid label '{label}' in FQDN: {fqdn}")
            return False

    # Top-level domain is never numeric, which keeps IPv4 addresses out
    if labels[-1].isdigit():
        return False

    return True


def _validate_label(label: str) -> bool:
    """Validate a single domain label (letters, digits, inner hyphens)."""
    if len(label) == 0 or len(label) > 63:
        return False
    return bool(_LABEL_REGEXP.match(label))


def validate_ip(address: str) -> bool:
    """
    Validate an IPv4 or IPv6 address.

    Args:
        address: The address to validate

    Returns:
        True if valid, False otherwise
    """
    if not address or not isinstance(address, str):
        return False

    try:
        ipaddress.ip_address(address.strip())
        return True
    except ValueError:
        logger.debug(f"Invalid IP address: {address}")
        return False


def split_fqdn(fqdn: str) -> Tuple[str, str]:
    """
    Split an FQDN into its first label and the remaining domain.

    ``split_fqdn("www.example.com")`` returns ``("www", "example.com")``.

    Raises:
        ValidationError: if the name has no domain part
    """
    name, sep, domain = fqdn.partition(".")
    if not sep or not name or not domain:
        raise ValidationError(f"'{fqdn}' is not a fully qualified name")
    return name, domain


def sanitize_fqdn(fqdn: str) -> str:
    """Normalize an FQDN for comparisons (trim, drop dots at the ends, lower-case)."""
    if not fqdn:
        return fqdn
    return fqdn.strip().strip(".").lower()

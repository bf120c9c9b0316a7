"""
Netmagis client - host management through the Netmagis web forms

Netmagis has no API: each operation is the submission of the form a user
would fill in the web interface, after a CAS login. Constructing a client
authenticates once; the session is then reused by every call and is never
renewed automatically.

A client holds one session and must not be shared between threads. Use one
client per thread instead.
"""

import logging
import re
from typing import Optional

from .exceptions import OperationError, OperationFailure, ValidationError
from .models import (
    DEFAULT_VIEW_ID,
    EditableHost,
    HostOptions,
    HostRecord,
    OperationRequest,
)
from .operations import OperationCaller
from ..parsers.html import parse_edit_form, parse_search_table
from ..providers.base_provider import Transport
from ..providers.cas import CASAuthenticator
from ..providers.http_client import RequestsTransport
from ..utils.config import DEFAULT_TIMEOUT, get_netmagis_settings, load_config
from ..utils.validators import split_fqdn, validate_fqdn, validate_ip

logger = logging.getLogger(__name__)

SEARCH_FOUND_REGEXP = re.compile(r"is a.* in view ")
SEARCH_NOT_FOUND_REGEXP = re.compile(r"String '[^']*' not found")
NAME_NOT_FOUND_REGEXP = re.compile(r"Name '[^']*' does not exist")

HOST_ADDED = "Host has been added."
HOST_STORED = "The modification has been stored in database"
HOST_REMOVED = "has been removed"
ALIAS_ADDED = "The alias has been added"


def _contains(phrase: str):
    return lambda body: phrase in body


class NetmagisClient:
    """Authenticated Netmagis session exposing host operations."""

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        timeout: int = DEFAULT_TIMEOUT,
        transport: Optional[Transport] = None,
    ):
        """
        Authenticate through CAS and prepare the operation caller.

        Raises:
            AuthError: if any step of the CAS login fails
        """
        self.base_url = url.rstrip("/")
        self.transport = transport or RequestsTransport(timeout=timeout)
        CASAuthenticator(self.transport).establish(self.base_url, username, password)
        self.caller = OperationCaller(self.base_url, self.transport)

    @classmethod
    def from_config(cls, config_path: str, transport: Optional[Transport] = None):
        """Build a client from the ``netmagis`` section of a YAML file."""
        settings = get_netmagis_settings(load_config(config_path))
        return cls(
            settings.url,
            settings.username,
            settings.password,
            timeout=settings.timeout,
            transport=transport,
        )

    def close(self):
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def search(self, host: str) -> Optional[HostRecord]:
        """
        Search a host by FQDN or IP address.

        Returns:
            The decoded record, or None when Netmagis does not know the host

        Raises:
            ValidationError: if ``host`` is neither a FQDN nor an IP address
        """
        if not validate_ip(host) and not validate_fqdn(host):
            raise ValidationError(f"host '{host}' is not a FQDN or an IP address")

        def is_search_page(body: str) -> bool:
            return bool(
                SEARCH_FOUND_REGEXP.search(body) or SEARCH_NOT_FOUND_REGEXP.search(body)
            )

        body = self.caller.call("/search", {"q": host}, is_search_page)
        if SEARCH_NOT_FOUND_REGEXP.search(body):
            logger.info(f"Host {host} not found")
            return None

        record = parse_search_table(body, host)
        logger.info(f"Found {record.fqdn} ({record.ip_address}) for {host}")
        return record

    def get_host(self, fqdn: str) -> Optional[EditableHost]:
        """
        Read the current state of a host from its modification form.

        Returns:
            The editable host, or None when the name does not exist
        """
        name, domain = split_fqdn(fqdn)
        request = OperationRequest(
            "/mod",
            {"action": "edit", "name": name, "domain": domain},
            lambda body: True,
        )
        try:
            body = self.caller.execute(request)
        except OperationError as e:
            # Netmagis reports unknown names as an error page
            if e.kind is OperationFailure.SERVER_REJECTED and NAME_NOT_FOUND_REGEXP.search(
                e.message
            ):
                logger.info(f"Host {fqdn} does not exist")
                return None
            raise

        fields = parse_edit_form(body)
        return EditableHost(
            record_id=fields.get("idrr", ""),
            name=fields.get("name", name),
            domain=fields.get("domain", domain),
            view_id=fields.get("idview", DEFAULT_VIEW_ID),
            options=HostOptions.from_form(fields),
            fields=fields,
        )

    def create_host(
        self,
        fqdn: str,
        ip: str,
        options: Optional[HostOptions] = None,
        allow_multiple: bool = False,
    ) -> None:
        """
        Declare a new host.

        Args:
            fqdn: name of the host
            ip: address of the host
            options: optional host fields
            allow_multiple: allow another address on an existing name
                (round-robin DNS); the existence check is then skipped

        Raises:
            ValidationError: on a bad name or address, or if the host already
                exists and ``allow_multiple`` is not set
            OperationError: if Netmagis refuses or answers unexpectedly
        """
        if not validate_fqdn(fqdn):
            raise ValidationError(f"'{fqdn}' is not a FQDN")
        if not validate_ip(ip):
            raise ValidationError(f"'{ip}' is not an IP address")
        name, domain = split_fqdn(fqdn)

        if not allow_multiple and self.get_host(fqdn) is not None:
            raise ValidationError(
                f"host '{fqdn}' already declared, use `allow_multiple` to allow round-robin DNS"
            )

        fields = {
            "action": "add-host",
            "idview": DEFAULT_VIEW_ID,
            "addr": ip,
            "name": name,
            "domain": domain,
            "naddr": "1",
            "confirm": "yes",
        }
        fields.update((options or HostOptions()).to_form())

        self.caller.call("/add", fields, _contains(HOST_ADDED))
        logger.info(f"Created host {fqdn} -> {ip}")

    def update_host(
        self, fqdn: str, record_id: str, options: Optional[HostOptions] = None
    ) -> None:
        """
        Store new values for an existing host.

        Fields not set in ``options`` are reset to their defaults; read the
        current values with ``get_host`` first to keep them.
        """
        name, domain = split_fqdn(fqdn)
        fields = {
            "action": "store",
            "confirm": "yes",
            "idrr": record_id,
            "idview": DEFAULT_VIEW_ID,
            "name": name,
            "domain": domain,
        }
        fields.update((options or HostOptions()).to_form())

        self.caller.call("/mod", fields, _contains(HOST_STORED))
        logger.info(f"Updated host {fqdn} (idrr={record_id})")

    def delete_host(self, fqdn: str) -> None:
        name, domain = split_fqdn(fqdn)
        fields = {"idviews": DEFAULT_VIEW_ID, "name": name, "domain": domain}

        self.caller.call("/del", fields, _contains(HOST_REMOVED))
        logger.info(f"Deleted host {fqdn}")

    def create_alias(self, alias: str, target: str) -> None:
        """Make ``alias`` a CNAME-like alias of the existing host ``target``."""
        alias_name, alias_domain = split_fqdn(alias)
        target_name, target_domain = split_fqdn(target)
        fields = {
            "action": "add-alias",
            "name": alias_name,
            "domain": alias_domain,
            "nameref": target_name,
            "domainref": target_domain,
            "idview": DEFAULT_VIEW_ID,
        }

        self.caller.call("/add", fields, _contains(ALIAS_ADDED))
        logger.info(f"Created alias {alias} -> {target}")

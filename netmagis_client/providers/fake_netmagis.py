"""
In-memory Netmagis for demonstration and feature tests.

``FakeNetmagis`` is a responder for ``MockTransport``: it plays both the CAS
server and the Netmagis web interface, keeps hosts in memory and answers
with pages shaped like the real ones.
"""

import html
import logging
from typing import Dict, Optional
from urllib.parse import urlsplit

from .base_provider import HttpResponse, make_response
from ..core.models import HostOptions
from ..parsers.html import encode_search_table

logger = logging.getLogger(__name__)

LOGIN_PAGE = (
    '<html><body><form id="fm1" method="post">'
    '<input id="username" name="username" type="text" value=""/>'
    '<input id="password" name="password" type="password" value=""/>'
    '<input type="hidden" name="execution" value="{token}"/>'
    '<input type="hidden" name="_eventId" value="submit"/>'
    "</form></body></html>"
)
LOGIN_FAILED_PAGE = (
    "<html><body><div><span>Authentication attempt has failed, likely due to "
    "invalid credentials. Please verify and try again. </span></div></body></html>"
)
DEVICE_TYPES = ["PC/Unix", "PC/Windows", "Printer", "Router", "Switch"]
DHCP_PROFILES = {1: "default", 3: "pxe"}


def _page(content: str) -> HttpResponse:
    return make_response(200, f"<html><body>{content}</body></html>")


def _error(message: str) -> HttpResponse:
    return _page(
        f'<h2>Error!</h2><blockquote><FONT COLOR="#FF0000">"{html.escape(message, quote=False)}"'
        "</FONT></blockquote>"
    )


class FakeNetmagis:
    """Stateful stand-in for a CAS-protected Netmagis server."""

    def __init__(
        self,
        base_url: str,
        username: str = "jdoe",
        password: str = "secret",
        cas_url: str = "https://cas.example.com/cas/login",
    ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.cas_url = cas_url
        self.hosts: Dict[str, Dict] = {}
        self.aliases: Dict[str, str] = {}
        self.next_id = 1
        self.authenticated = False

    def __call__(self, method: str, url: str, fields: Optional[Dict[str, str]]) -> HttpResponse:
        if url.startswith(self.cas_url):
            return self._cas(method, fields)

        path = urlsplit(url).path.rsplit("/", 1)[-1]
        if method == "GET" and path == "start":
            if "ticket=" in url:
                self.authenticated = True
                return _page("Welcome to Netmagis")
            return make_response(302, headers={"Location": self.cas_url})

        if not self.authenticated:
            return make_response(302, headers={"Location": self.cas_url})

        fields = fields or {}
        handlers = {
            "search": self._search,
            "mod": self._mod,
            "add": self._add,
            "del": self._del,
        }
        handler = handlers.get(path)
        if method != "POST" or handler is None:
            return make_response(404, "Not Found")
        return handler(fields)

    def add_host(self, fqdn: str, ip: str, options: HostOptions = None):
        """Declare a host directly, bypassing the forms."""
        if fqdn in self.hosts:
            self.hosts[fqdn]["addresses"].append(ip)
            return
        self.hosts[fqdn] = {
            "idrr": str(self.next_id),
            "addresses": [ip],
            "options": options or HostOptions(),
        }
        self.next_id += 1

    def _cas(self, method: str, fields: Optional[Dict[str, str]]) -> HttpResponse:
        if method == "GET":
            return make_response(200, LOGIN_PAGE.format(token="e1s1"))
        if (
            fields.get("execution") != "e1s1"
            or fields.get("username") != self.username
            or fields.get("password") != self.password
        ):
            return make_response(200, LOGIN_FAILED_PAGE)
        return make_response(302, headers={"Location": f"{self.base_url}/start?ticket=ST-1"})

    def _find(self, query: str) -> Optional[str]:
        query = query.lower()
        if query in self.hosts:
            return query
        if query in self.aliases:
            return self.aliases[query]
        for fqdn, host in self.hosts.items():
            if query in host["addresses"]:
                return fqdn
        return None

    def _search(self, fields: Dict[str, str]) -> HttpResponse:
        query = fields.get("q", "")
        fqdn = self._find(query)
        if fqdn is None:
            return _page(f"<p>String '{html.escape(query)}' not found</p>")

        host = self.hosts[fqdn]
        options = host["options"]
        kind = "an alias" if query.lower() in self.aliases else "a host"
        table = encode_search_table(
            [
                ("Name", fqdn),
                ("IP address", " ".join(host["addresses"])),
                ("MAC address", options.mac),
                ("TTL", options.ttl or 86400),
                ("DHCP profile", DHCP_PROFILES.get(options.dhcp_profile_id)),
                ("Machine", options.device_type),
                ("Comment", options.comment),
                ("Responsible (name)", options.owner_name),
                ("Responsible (mail)", options.owner_mail),
                ("SMTP emit right", options.smtp_allowed),
                ("Aliases", sorted(a for a, t in self.aliases.items() if t == fqdn)),
            ]
        )
        return _page(f"<p>{html.escape(query)} is {kind} in view default</p>{table}")

    def _mod(self, fields: Dict[str, str]) -> HttpResponse:
        fqdn = f"{fields.get('name')}.{fields.get('domain')}".lower()
        host = self.hosts.get(fqdn)
        if host is None:
            return _error(f"Name '{fields.get('name')}' does not exist")

        if fields.get("action") == "edit":
            return _page(self._edit_form(fqdn, host))
        if fields.get("action") == "store" and fields.get("idrr") == host["idrr"]:
            host["options"] = HostOptions.from_form(fields)
            return _page("<p>The modification has been stored in database.</p>")
        return _error(f"Invalid RR id '{fields.get('idrr')}'")

    def _edit_form(self, fqdn: str, host: Dict) -> str:
        options = host["options"]
        name, domain = fqdn.split(".", 1)
        inputs = [
            ("hidden", "action", "store"),
            ("hidden", "confirm", "no"),
            ("hidden", "idrr", host["idrr"]),
            ("hidden", "idview", "1"),
            ("hidden", "name", name),
            ("hidden", "domain", domain),
            ("text", "ttl", "" if options.ttl is None else str(options.ttl)),
            ("text", "mac", options.mac),
            ("text", "comment", options.comment),
            ("text", "respname", options.owner_name),
            ("text", "respmail", options.owner_mail),
        ]
        parts = ['<form method="post" action="mod">']
        for kind, input_name, value in inputs:
            parts.append(
                f'<input type="{kind}" name="{input_name}" value="{html.escape(value)}">'
            )
        checked = " checked" if options.smtp_allowed else ""
        parts.append(f'<input type="checkbox" name="sendsmtp" value="1"{checked}>')

        parts.append('<select name="iddhcpprof"><option value="0">No profile</option>')
        for profile_id, label in DHCP_PROFILES.items():
            selected = " selected" if profile_id == options.dhcp_profile_id else ""
            parts.append(f'<option value="{profile_id}"{selected}>{label}</option>')
        parts.append("</select>")

        parts.append('<select name="hinfo">')
        for device_type in DEVICE_TYPES:
            selected = " selected" if device_type == options.device_type else ""
            parts.append(f'<option value="{device_type}"{selected}>{device_type}</option>')
        parts.append("</select>")

        parts.append('<input type="submit" value="Store"></form>')
        return "\n".join(parts)

    def _add(self, fields: Dict[str, str]) -> HttpResponse:
        fqdn = f"{fields.get('name')}.{fields.get('domain')}".lower()

        if fields.get("action") == "add-alias":
            target = f"{fields.get('nameref')}.{fields.get('domainref')}".lower()
            if target not in self.hosts:
                return _error(f"Name '{fields.get('nameref')}' does not exist")
            if fqdn in self.hosts or fqdn in self.aliases:
                return _error(f"Name '{fields.get('name')}' already exists")
            self.aliases[fqdn] = target
            return _page("<p>The alias has been added.</p>")

        if fields.get("action") == "add-host":
            ip = fields.get("addr", "")
            if self._find(ip) is not None:
                return _error(f"IP address '{ip}' already used")
            self.add_host(fqdn, ip, HostOptions.from_form(fields))
            logger.info(f"Fake Netmagis: added {fqdn} -> {ip}")
            return _page("<p>Host has been added.</p>")

        return _error(f"Invalid action '{fields.get('action')}'")

    def _del(self, fields: Dict[str, str]) -> HttpResponse:
        fqdn = f"{fields.get('name')}.{fields.get('domain')}".lower()
        if fqdn in self.aliases:
            del self.aliases[fqdn]
        elif fqdn in self.hosts:
            del self.hosts[fqdn]
            self.aliases = {a: t for a, t in self.aliases.items() if t != fqdn}
        else:
            return _error(f"Name '{fields.get('name')}' does not exist")
        return _page(f"<p>Host {html.escape(fqdn)} has been removed.</p>")

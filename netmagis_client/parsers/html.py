"""
HTML decoding of Netmagis pages.

Two pages carry host data:

* the search result page, a two-column table of ``<td class="tab-text10">``
  cells alternating label and value (table-scrape)
* the modification form, whose inputs and selects are pre-filled with the
  current values (form-scrape)

Nothing outside this module knows about Netmagis markup.
"""

import html
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from ..core.exceptions import ParseError
from ..core.models import DEFAULT_DEVICE_TYPE, HostRecord
from ..utils.validators import sanitize_fqdn, validate_fqdn, validate_ip

logger = logging.getLogger(__name__)

TABLE_CELL_CLASS = "tab-text10"
NO_PROFILE = "No profile"
IGNORED_INPUTS = frozenset(["", "action", "confirm"])
SMTP_INPUT = "sendsmtp"
DHCP_PROFILE_SELECT = "iddhcpprof"

_LABEL_SPACES = re.compile(r"\s+")

# Table field -> HostRecord attribute
_RECORD_FIELDS = {
    "name": "name",
    "ip_address": "ip_address",
    "mac_address": "mac_address",
    "ttl": "ttl",
    "dhcp_profile": "dhcp_profile",
    "machine": "device_type",
    "comment": "comment",
    "responsible_name": "owner_name",
    "responsible_mail": "owner_mail",
    "smtp_emit_right": "smtp_allowed",
    "aliases": "aliases",
    "allowed_groups": "allowed_groups",
}
_BOOLEANS = {"Yes": True, "No": False, "": False}
_LIST_FIELDS = ("aliases", "allowed_groups")


def _soup(body: str) -> BeautifulSoup:
    if not isinstance(body, str) or not body.strip():
        raise ParseError("empty HTML response")
    try:
        doc = BeautifulSoup(body, "html.parser")
    except ParserRejectedMarkup as e:
        raise ParseError(f"unable to parse HTML response: {e}") from e
    if doc.find() is None:
        raise ParseError("HTML response contains no markup")
    return doc


def normalize_label(label: str) -> str:
    """``"Responsible (name)"`` -> ``"responsible_name"``."""
    label = label.strip().replace("(", "").replace(")", "")
    return _LABEL_SPACES.sub("_", label).lower()


def coerce_value(field: str, value: str):
    """Convert the text of a table cell according to its field."""
    if field == "smtp_emit_right":
        return _BOOLEANS.get(value, False)
    if field == "ttl":
        # Lenient: an unparsable TTL reads as 0
        return int(value) if value.isdecimal() else 0
    if field == "dhcp_profile":
        return None if value in ("", NO_PROFILE) else value
    if field in _LIST_FIELDS:
        return value.split()
    return value


def _render_value(field: str, value) -> str:
    if field == "smtp_emit_right":
        return "Yes" if value else "No"
    if field == "dhcp_profile" and not value:
        return NO_PROFILE
    if field in _LIST_FIELDS:
        return " ".join(value or [])
    return "" if value is None else str(value)


def parse_search_table(body: str, query: str) -> HostRecord:
    """
    Decode the search result page into a HostRecord.

    Args:
        body: HTML of the /search answer
        query: the FQDN or address that was searched

    Returns:
        The decoded record; ``is_alias`` is set when a name was searched and
        Netmagis answered with a different canonical name
    """
    doc = _soup(body)
    cells = [
        cell.get_text().strip()
        for cell in doc.find_all("td", class_=TABLE_CELL_CLASS)
    ]
    if len(cells) % 2:
        logger.warning(f"Odd number of table cells ({len(cells)}), last one ignored")

    fields = {}
    for label, value in zip(cells[0::2], cells[1::2]):
        field = normalize_label(label)
        fields[field] = coerce_value(field, value)

    return _build_record(fields, query)


def _build_record(fields: Dict, query: str) -> HostRecord:
    canonical = fields.get("name", "")
    query_is_name = validate_fqdn(query)

    if "." in canonical:
        name, domain = canonical.split(".", 1)
    elif query_is_name:
        name, domain = canonical, query.split(".", 1)[1]
    else:
        name, domain = canonical, ""

    record = HostRecord(name=name, domain=domain)
    for field, value in fields.items():
        attribute = _RECORD_FIELDS.get(field)
        if attribute is None:
            record.extra[field] = value
        elif attribute != "name":
            setattr(record, attribute, value)

    invalid = [a for a in record.ip_address.split() if not validate_ip(a)]
    if invalid:
        logger.warning(f"Invalid address(es) {', '.join(invalid)} for {record.fqdn}")

    if not record.device_type:
        record.device_type = DEFAULT_DEVICE_TYPE
    for attribute in ("mac_address", "comment", "owner_name", "owner_mail"):
        if getattr(record, attribute) == "":
            setattr(record, attribute, None)

    if query_is_name:
        record.is_alias = sanitize_fqdn(query) != sanitize_fqdn(record.fqdn)
    return record


def encode_search_table(fields: Iterable[Tuple[str, object]]) -> str:
    """
    Render ``(label, value)`` pairs as search result table markup.

    Values are given in their decoded form (booleans, lists, ints, None) and
    rendered the way Netmagis displays them.
    """
    rows = []
    for label, value in fields:
        text = _render_value(normalize_label(label), value)
        rows.append(
            f'<tr><td class="{TABLE_CELL_CLASS}">{html.escape(label)}</td>'
            f'<td class="{TABLE_CELL_CLASS}">{html.escape(text)}</td></tr>'
        )
    return "<table>\n" + "\n".join(rows) + "\n</table>"


def parse_edit_form(body: str) -> Dict[str, str]:
    """
    Decode the host modification form into its field values.

    Control inputs (``action``, ``confirm``, unnamed) are skipped. The SMTP
    checkbox reads "1" when checked, "0" otherwise. A select without a
    selected option has no value, except the DHCP profile which defaults
    to "0" like Netmagis does.
    """
    doc = _soup(body)
    fields: Dict[str, str] = {}

    for node in doc.find_all("input"):
        name = node.get("name", "")
        if name in IGNORED_INPUTS:
            continue
        if name == SMTP_INPUT:
            fields[name] = "1" if node.has_attr("checked") else "0"
        else:
            fields[name] = node.get("value", "")

    for node in doc.find_all("select"):
        name = node.get("name", "")
        selected = _selected_option(node.find_all("option"))
        if selected is not None:
            fields[name] = selected
        elif name == DHCP_PROFILE_SELECT:
            fields[name] = "0"

    return fields


def _selected_option(options: List) -> Optional[str]:
    for option in options:
        if option.has_attr("selected"):
            return option.get("value", option.get_text().strip())
    return None

"""
Host records and per-operation options.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

DEFAULT_DEVICE_TYPE = "PC/Unix"
DEFAULT_VIEW_ID = "1"


@dataclass
class HostRecord:
    """
    A host entry as shown by the Netmagis search page.

    ``name`` and ``domain`` are split from the canonical name Netmagis
    returns, not from the searched name: for an alias in another domain,
    ``fqdn`` is the target host's name. The queried domain is used only when
    the canonical name is unqualified.
    """

    name: str
    domain: str
    ip_address: str = ""
    mac_address: Optional[str] = None
    ttl: int = 0
    dhcp_profile: Optional[str] = None
    device_type: str = DEFAULT_DEVICE_TYPE
    comment: Optional[str] = None
    owner_name: Optional[str] = None
    owner_mail: Optional[str] = None
    smtp_allowed: bool = False
    aliases: List[str] = field(default_factory=list)
    allowed_groups: List[str] = field(default_factory=list)
    # Derived from the query, see parsers.html.parse_search_table
    is_alias: bool = False
    extra: Dict[str, str] = field(default_factory=dict)

    @property
    def fqdn(self) -> str:
        return f"{self.name}.{self.domain}" if self.domain else self.name


@dataclass
class HostOptions:
    """
    Optional fields of the host creation and modification forms.

    ``ttl=None`` leaves the TTL to the server default. ``sendsmtp`` is left
    out of the form entirely when ``smtp_allowed`` is false: Netmagis treats
    an absent field differently from an explicit "0".
    """

    ttl: Optional[int] = None
    mac: str = ""
    dhcp_profile_id: int = 0
    device_type: str = DEFAULT_DEVICE_TYPE
    comment: str = ""
    owner_name: str = ""
    owner_mail: str = ""
    smtp_allowed: bool = False

    def to_form(self) -> Dict[str, str]:
        form = {
            "ttl": "" if self.ttl is None else str(self.ttl),
            "mac": self.mac,
            "iddhcpprof": str(self.dhcp_profile_id),
            "hinfo": self.device_type,
            "comment": self.comment,
            "respname": self.owner_name,
            "respmail": self.owner_mail,
        }
        if self.smtp_allowed:
            form["sendsmtp"] = "1"
        return form

    @classmethod
    def from_form(cls, fields: Dict[str, str]) -> "HostOptions":
        """Build options from the fields of a scraped edit form."""
        ttl = fields.get("ttl", "").strip()
        profile = fields.get("iddhcpprof", "0").strip()
        return cls(
            ttl=int(ttl) if ttl.isdecimal() else None,
            mac=fields.get("mac", ""),
            dhcp_profile_id=int(profile) if profile.isdecimal() else 0,
            device_type=fields.get("hinfo") or DEFAULT_DEVICE_TYPE,
            comment=fields.get("comment", ""),
            owner_name=fields.get("respname", ""),
            owner_mail=fields.get("respmail", ""),
            smtp_allowed=fields.get("sendsmtp") == "1",
        )


@dataclass
class EditableHost:
    """Current state of a host, read from its modification form."""

    record_id: str
    name: str
    domain: str
    view_id: str
    options: HostOptions
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def fqdn(self) -> str:
        return f"{self.name}.{self.domain}"


@dataclass
class OperationRequest:
    """One form submission and the predicate telling success apart."""

    path: str
    fields: Dict[str, str]
    is_success: Callable[[str], bool]


@dataclass(frozen=True)
class Success:
    body: str


@dataclass(frozen=True)
class StructuredError:
    message: str


@dataclass(frozen=True)
class UnexpectedBody:
    raw_body: str

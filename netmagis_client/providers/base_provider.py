"""
Base transport interface.

This module defines the abstract base class that all HTTP transports must
implement. Transports keep cookies across calls and never follow redirects,
so that the CAS ceremony can read ``Location`` headers itself.
"""

from abc import ABC, abstractmethod
from typing import Dict, Mapping, NamedTuple

from requests.structures import CaseInsensitiveDict


class HttpResponse(NamedTuple):
    """Status, headers and decoded body of one HTTP exchange."""

    status_code: int
    headers: CaseInsensitiveDict
    text: str

    @property
    def is_redirect(self) -> bool:
        return self.status_code in (301, 302)

    @property
    def location(self) -> str:
        return self.headers.get("Location", "")


class Transport(ABC):
    """Abstract base class for cookie-keeping, redirect-suppressing transports."""

    @abstractmethod
    def get(self, url: str) -> HttpResponse:
        """GET a URL."""
        pass

    @abstractmethod
    def get_no_redirect(self, url: str) -> HttpResponse:
        """GET a URL, surfacing a 3xx answer instead of following it."""
        pass

    @abstractmethod
    def post_form(self, url: str, fields: Mapping[str, str]) -> HttpResponse:
        """POST ``fields`` as an application/x-www-form-urlencoded body."""
        pass

    def close(self) -> None:
        """Release pooled connections."""
        pass


def make_response(status_code: int, text: str = "", headers: Dict = None) -> HttpResponse:
    return HttpResponse(status_code, CaseInsensitiveDict(headers or {}), text)

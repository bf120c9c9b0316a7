"""
HTTP transport backed by ``requests``.

One ``requests.Session`` per transport: its cookie jar carries the CAS and
Netmagis session cookies between calls. Redirects are never followed so
headers can be parsed for retrieving URLs (like the CAS URL).
"""

import logging
from typing import Mapping

import requests
from requests.structures import CaseInsensitiveDict

from .base_provider import HttpResponse, Transport
from ..core.exceptions import TransportError
from ..utils.config import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class RequestsTransport(Transport):
    """Transport implementation using a persistent ``requests.Session``."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT, session: requests.Session = None):
        """Initialize the transport with a fixed request timeout in seconds."""
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.debug(f"HTTP transport initialized (timeout={timeout}s)")

    def get(self, url: str) -> HttpResponse:
        return self._request("GET", url)

    def get_no_redirect(self, url: str) -> HttpResponse:
        # Every request already suppresses redirects
        return self._request("GET", url)

    def post_form(self, url: str, fields: Mapping[str, str]) -> HttpResponse:
        return self._request("POST", url, data=dict(fields))

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, url: str, **kwargs) -> HttpResponse:
        logger.debug(f"{method} {url}")
        try:
            res = self.session.request(
                method, url, timeout=self.timeout, allow_redirects=False, **kwargs
            )
        except requests.RequestException as e:
            raise TransportError(f"HTTP error: {e}") from e

        logger.debug(f"{method} {url} -> {res.status_code}")
        return HttpResponse(res.status_code, CaseInsensitiveDict(res.headers), res.text)

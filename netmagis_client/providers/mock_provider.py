"""
Mock transport for testing and demonstration.

This module provides a transport that serves canned responses from memory
and records every request, for safe testing without a Netmagis server.
"""

import logging
from collections import deque
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Union

from .base_provider import HttpResponse, Transport, make_response
from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)

Responder = Callable[[str, str, Optional[Dict[str, str]]], HttpResponse]


class RecordedRequest(NamedTuple):
    method: str
    url: str
    fields: Optional[Dict[str, str]]


class MockTransport(Transport):
    """
    Transport serving queued responses in FIFO order.

    A queued item can be an ``HttpResponse``, an exception instance (raised
    as the transport failure) or a callable ``(method, url, fields)`` that
    builds the response. Once the queue is empty, ``responder`` (if any)
    answers every request.
    """

    def __init__(
        self,
        responses: List[Union[HttpResponse, Exception, Responder]] = None,
        responder: Optional[Responder] = None,
    ):
        """Initialize mock transport."""
        self.responses = deque(responses or [])
        self.responder = responder
        self.requests: List[RecordedRequest] = []
        self.closed = False
        logger.info("Mock transport initialized")

    def queue(self, status_code: int, text: str = "", headers: Dict = None) -> "MockTransport":
        """Queue a response; returns self so calls can be chained."""
        self.responses.append(make_response(status_code, text, headers))
        return self

    def queue_error(self, error: Exception) -> "MockTransport":
        self.responses.append(error)
        return self

    def get(self, url: str) -> HttpResponse:
        return self._serve("GET", url, None)

    def get_no_redirect(self, url: str) -> HttpResponse:
        return self._serve("GET", url, None)

    def post_form(self, url: str, fields: Mapping[str, str]) -> HttpResponse:
        return self._serve("POST", url, dict(fields))

    def close(self) -> None:
        self.closed = True

    @property
    def posts(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == "POST"]

    def _serve(self, method: str, url: str, fields: Optional[Dict[str, str]]) -> HttpResponse:
        self.requests.append(RecordedRequest(method, url, fields))
        if self.responses:
            item = self.responses.popleft()
        elif self.responder is not None:
            item = self.responder
        else:
            raise TransportError(f"Mock: no response queued for {method} {url}")

        if isinstance(item, Exception):
            raise item
        if callable(item):
            item = item(method, url, fields)
        logger.info(f"Mock: {method} {url} -> {item.status_code}")
        return item

"""
Operation caller - form submission and response classification

Netmagis answers every form with HTTP 200, so success is established from the
HTML: an error banner means the server rejected the request, a page matching
the operation's confirmation means success, anything else is unexpected.
"""

import logging
import re
from typing import Callable, Mapping, Union

from .exceptions import OperationError, OperationFailure
from .models import OperationRequest, StructuredError, Success, UnexpectedBody
from ..providers.base_provider import Transport

logger = logging.getLogger(__name__)

ERROR_MARKER = "<h2>Error!</h2>"
ERROR_REGEXP = re.compile(
    r'<blockquote><FONT COLOR="#FF0000">(.*?)</FONT></blockquote>', re.DOTALL
)

ClassifiedResponse = Union[Success, StructuredError, UnexpectedBody]


def join_url(base_url: str, *paths: str) -> str:
    """Append path segments to a base URL with single slashes."""
    url = base_url.rstrip("/")
    for path in paths:
        url += f"/{path.strip('/')}"
    return url


def classify(body: str, is_success: Callable[[str], bool]) -> ClassifiedResponse:
    """Classify a Netmagis answer; the error banner takes precedence."""
    if ERROR_MARKER in body:
        match = ERROR_REGEXP.search(body)
        message = match.group(1).strip().strip('"') if match else ""
        return StructuredError(message)
    if is_success(body):
        return Success(body)
    return UnexpectedBody(body)


class OperationCaller:
    """Submits forms to Netmagis through an authenticated transport."""

    def __init__(self, base_url: str, transport: Transport):
        self.base_url = base_url
        self.transport = transport

    def call(
        self, path: str, fields: Mapping[str, str], is_success: Callable[[str], bool]
    ) -> str:
        """
        POST a form and return the body if the operation succeeded.

        Args:
            path: path relative to the base URL (``/search``, ``/add``, ...)
            fields: form fields
            is_success: predicate recognizing the confirmation page

        Returns:
            The HTML body of the confirmation page

        Raises:
            OperationError: SERVER_REJECTED with the banner message, or
                UNEXPECTED_RESPONSE with the raw body
            TransportError: on HTTP failure
        """
        url = join_url(self.base_url, path)
        res = self.transport.post_form(url, fields)

        result = classify(res.text, is_success)
        if isinstance(result, StructuredError):
            logger.warning(f"{path}: Netmagis error: {result.message}")
            raise OperationError(OperationFailure.SERVER_REJECTED, result.message)
        if isinstance(result, UnexpectedBody):
            logger.error(f"{path}: unexpected answer ({len(result.raw_body)} bytes)")
            raise OperationError(
                OperationFailure.UNEXPECTED_RESPONSE,
                f"unexpected answer from {path}",
                body=result.raw_body,
            )

        logger.debug(f"{path}: success")
        return result.body

    def execute(self, request: OperationRequest) -> str:
        return self.call(request.path, request.fields, request.is_success)

"""
CAS authentication for Netmagis.

Netmagis delegates login to a CAS server. Logging in is a fixed sequence:

1. GET ``{base_url}/start``, which redirects to the CAS login page
2. GET the CAS login page
3. extract the one-time ``execution`` token from the login form
4. POST the credentials with the token, then follow the callback
   ``Location`` once so Netmagis sets its own session cookie

There are no retries: a network failure at any step is reported as an
``AuthError`` for that step.

FIXME: transient connection failures during login were seen with older
tooling against the same CAS server; a retry policy is still undecided.
"""

import logging
import re

from .base_provider import Transport
from ..core.exceptions import AuthError, AuthStage, TransportError

logger = logging.getLogger(__name__)

EXECUTION_REGEXP = re.compile(
    r'<input type="hidden" name="execution" value="?([^"]*)"\s*/?>'
)
LOGIN_ERROR_REGEXP = re.compile(
    r"Authentication attempt has failed, likely due to invalid\s+"
    r"credentials\.\s+Please verify and try again\."
)


class CASAuthenticator:
    """Runs the CAS login ceremony over a transport."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def establish(self, base_url: str, username: str, password: str) -> str:
        """
        Authenticate against Netmagis through CAS.

        Args:
            base_url: Netmagis base URL
            username: CAS username
            password: CAS password

        Returns:
            The CAS login URL that was used

        Raises:
            AuthError: naming the step that failed
        """
        login_url = self.discover_login_url(base_url)
        login_page = self.fetch_login_page(login_url)
        token = self.find_execution_token(login_page)
        self.login(login_url, username, password, token)
        logger.info(f"Authenticated to {base_url} as {username}")
        return login_url

    def discover_login_url(self, base_url: str) -> str:
        start_url = f"{base_url}/start"
        try:
            res = self.transport.get_no_redirect(start_url)
        except TransportError as e:
            raise AuthError(AuthStage.NO_REDIRECT, f"unable to retrieve CAS URL: {e}")

        if not res.is_redirect:
            raise AuthError(
                AuthStage.NO_REDIRECT,
                f"invalid status code: '{res.status_code}' (301 or 302 expected)",
            )
        if not res.location:
            raise AuthError(AuthStage.NO_REDIRECT, "redirect without Location header")

        logger.debug(f"CAS login URL: {res.location}")
        return res.location

    def fetch_login_page(self, login_url: str) -> str:
        try:
            res = self.transport.get(login_url)
        except TransportError as e:
            raise AuthError(AuthStage.LOGIN_PAGE_UNREACHABLE, str(e))

        if res.status_code != 200:
            raise AuthError(
                AuthStage.LOGIN_PAGE_UNREACHABLE, f"HTTP Error: {res.status_code}"
            )
        return res.text

    def find_execution_token(self, login_page: str) -> str:
        match = EXECUTION_REGEXP.search(login_page)
        if not match:
            raise AuthError(AuthStage.TOKEN_NOT_FOUND, "token not found")
        return match.group(1)

    def login(self, login_url: str, username: str, password: str, token: str) -> None:
        form_data = {
            "_eventId": "submit",
            "username": username,
            "password": password,
            "execution": token,
        }
        try:
            res = self.transport.post_form(login_url, form_data)
        except TransportError as e:
            raise AuthError(AuthStage.CALLBACK_FAILED, f"login request error: {e}")

        if LOGIN_ERROR_REGEXP.search(res.text):
            raise AuthError(AuthStage.INVALID_CREDENTIALS, "invalid login or password")

        if not res.location:
            raise AuthError(
                AuthStage.CALLBACK_FAILED,
                f"no callback location in login answer (status {res.status_code})",
            )

        # Body is ignored, this leg only makes Netmagis set its session cookie
        logger.debug(f"Following CAS callback {res.location}")
        try:
            self.transport.get(res.location)
        except TransportError as e:
            raise AuthError(AuthStage.CALLBACK_FAILED, f"login call back error: {e}")

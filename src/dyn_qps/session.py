"""Dyn REST API session client.

Implements the fixed protocol a QPS check needs:

    POST   Session/     -> token
    POST   QPSReport/   -> CSV report (possibly after redirects)
    DELETE Session/     -> release the token

Long running report jobs are answered with 301/302/307 and a Location
(usually a relative /REST/Job/<id> path). The client polls that location with
GET, waiting a fixed delay between attempts, until a 200 arrives or the retry
budget is spent.

Transport problems (connection refused, timeouts, broken framing) surface as
TransportError; everything the API says that we cannot use surfaces as one of
the application errors in dyn_qps.errors.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx

from dyn_qps.errors import (
    AuthenticationError,
    BadResponseError,
    RetryExhaustedError,
    SessionTerminationError,
    TransportError,
)

if TYPE_CHECKING:
    from dyn_qps.models import TimeWindow

logger = logging.getLogger("dyn_qps.session")

SESSION_PATH = "Session/"
QPS_REPORT_PATH = "QPSReport/"
REDIRECT_STATUSES = frozenset({301, 302, 307})
DEFAULT_RETRY_DELAY_SEC = 5.0


def _encode(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


def _api_messages(document: Any) -> list[str]:
    """Collect the INFO texts of a Dyn response's msgs list."""
    if not isinstance(document, dict):
        return []
    messages = []
    for entry in document.get("msgs") or []:
        if isinstance(entry, dict) and entry.get("INFO"):
            messages.append(str(entry["INFO"]))
    return messages


class DynSession:
    """Synchronous client for one authenticated Dyn API session.

    Use as a context manager so the underlying HTTP connection pool is closed:

        with DynSession(config.base_url) as session:
            token = session.authenticate(customer, user, password)
            body = session.fetch_report(token, window, max_retries=50)
            session.terminate(token)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        retry_delay: float = DEFAULT_RETRY_DELAY_SEC,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
        )

    def __enter__(self) -> DynSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return self._client.request(
                method,
                url,
                headers=headers,
                content=_encode(payload) if payload is not None else None,
            )
        except httpx.RequestError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    def authenticate(self, customer: str, user: str, password: str) -> str:
        """Log in and return the session token."""
        logger.info("Opening Dyn API session for %s/%s", customer, user)
        response = self._send(
            "POST",
            SESSION_PATH,
            headers={"Content-Type": "application/json"},
            payload={"customer_name": customer, "user_name": user, "password": password},
        )

        try:
            document = response.json()
        except ValueError as e:
            raise AuthenticationError(
                f"HTTP {response.status_code} with a non-JSON body"
            ) from e

        data = document.get("data") if isinstance(document, dict) else None
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError(
                f"HTTP {response.status_code} without a session token",
                _api_messages(document),
            )
        return str(token)

    def fetch_report(self, token: str, window: TimeWindow, max_retries: int) -> str:
        """Request the QPS report for a window and return the raw response body.

        Raises:
            BadResponseError: a status other than 200 or a redirect.
            RetryExhaustedError: still redirected after max_retries attempts.
            TransportError: the API could not be reached.
        """
        headers = {"Content-Type": "application/json", "Auth-Token": token}
        response = self._send("POST", QPS_REPORT_PATH, headers=headers, payload=window.to_params())

        attempts = 0
        while response.status_code != 200:
            if response.status_code not in REDIRECT_STATUSES:
                raise BadResponseError(response.status_code)
            if attempts >= max_retries:
                raise RetryExhaustedError(attempts)

            location = response.headers.get("location")
            if not location:
                raise BadResponseError(response.status_code, "redirect without a Location header")
            redirected_url = str(response.url.join(location))

            attempts += 1
            logger.info(
                "Redirected to %s, retrying the request (try %d of %d)",
                redirected_url,
                attempts,
                max_retries,
            )
            response = self._send("GET", redirected_url, headers=headers)
            self._sleep(self.retry_delay)

        logger.info("QPS report received after %d redirect(s)", attempts)
        return response.text

    def terminate(self, token: str) -> None:
        """Log out. Failures raise SessionTerminationError, which callers treat as advisory."""
        try:
            response = self._send("DELETE", SESSION_PATH, headers={"Auth-Token": token})
        except TransportError as e:
            logger.warning("Logout failed: %s", e)
            raise SessionTerminationError(f"Logout failed: {e}") from e

        if response.is_error:
            logger.warning("Logout returned HTTP %d", response.status_code)
            raise SessionTerminationError(f"Logout returned HTTP {response.status_code}")
        logger.info("Dyn API session closed")
